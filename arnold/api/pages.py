"""Static HTML pages shown in the browser tab that completes Google OAuth."""

from __future__ import annotations

from html import escape

from arnold.services.account_linking import LinkOutcome, LinkOutcomeStatus

_SUCCESS_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Connected</title>
    <style>
      body {{
        font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif;
        text-align: center;
        padding: 50px;
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        color: white;
      }}
      .container {{
        background: white;
        color: #333;
        padding: 40px;
        border-radius: 10px;
        max-width: 500px;
        margin: 0 auto;
        box-shadow: 0 10px 40px rgba(0,0,0,0.2);
      }}
      h1 {{ color: #4CAF50; margin-bottom: 10px; }}
      p {{ line-height: 1.6; }}
      code {{ background: #f4f4f4; padding: 4px 8px; border-radius: 4px; }}
      .next-steps {{
        text-align: left;
        margin-top: 30px;
        padding: 20px;
        background: #f9f9f9;
        border-radius: 5px;
      }}
    </style>
  </head>
  <body>
    <div class="container">
      <h1>✅ Successfully Connected!</h1>
      <p>Your Google Analytics account is now connected to {bot_name}.</p>
      <div class="next-steps">
        <h3>📋 Next Steps:</h3>
        <ol>
          <li>Return to Slack</li>
          <li>{next_step}</li>
          <li>Start asking {bot_name} questions!</li>
        </ol>
      </div>
      <p style="margin-top: 30px; color: #666; font-size: 14px;">
        You can close this window now.
      </p>
    </div>
  </body>
</html>
"""

_FAILURE_TEMPLATE = """<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>{title}</title></head>
  <body style="font-family: Arial; text-align: center; padding: 50px;">
    <h1>❌ {title}</h1>
    <p>{summary}</p>
    <p>Please try again in Slack with <code>{connect_command}</code>.</p>
    {detail}
  </body>
</html>
"""

_FAILURE_COPY = {
    LinkOutcomeStatus.AUTHORIZATION_DENIED: (
        "Connection Failed",
        "There was an error connecting to Google Analytics.",
    ),
    LinkOutcomeStatus.INVALID_REQUEST: (
        "Connection Failed",
        "This authorization link is invalid or has expired.",
    ),
    LinkOutcomeStatus.EXCHANGE_FAILED: (
        "Connection Failed",
        "Google did not complete the authorization.",
    ),
    LinkOutcomeStatus.STORAGE_FAILED: (
        "Error Storing Credentials",
        "We received your authorization but couldn't save it.",
    ),
}


def render_outcome_page(outcome: LinkOutcome, *, bot_name: str, command_prefix: str) -> str:
    """Render the callback page; every interpolated value is HTML-escaped."""
    if outcome.status.linked:
        if outcome.status is LinkOutcomeStatus.PROPERTIES_OFFERED:
            next_step = "Pick your property from the message I just sent you"
        else:
            next_step = (
                f"Use <code>{escape(command_prefix)}-property 123456789</code> "
                "to set your property"
            )
        return _SUCCESS_TEMPLATE.format(bot_name=escape(bot_name), next_step=next_step)

    title, summary = _FAILURE_COPY[outcome.status]
    detail = ""
    if outcome.detail:
        detail = (
            '<p style="color: #666; font-size: 12px;">'
            f"Error: {escape(outcome.detail)}</p>"
        )
    return _FAILURE_TEMPLATE.format(
        title=escape(title),
        summary=escape(summary),
        connect_command=escape(f"{command_prefix}-connect"),
        detail=detail,
    )


__all__ = ["render_outcome_page"]
