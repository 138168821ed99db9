"""HTML templates for the OAuth popup.

The bridge page talks to the Decap CMS window that opened the login popup:
it announces itself with ``authorizing:<provider>``, waits for the opener to
answer, and posts the result back only if the opener's origin is allowed.

Values reach the script through script_json(), never through raw formatting.
"""

import html
import json

# ============== Bridge Page ==============

BRIDGE_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{title}</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
               background: #F7F7F8; color: #1F2328;
               min-height: 100vh; display: flex; align-items: center; justify-content: center; margin: 0; }}
        .container {{ background: white; padding: 32px 40px; border-radius: 12px; border: 1px solid #E1E4E8;
                     max-width: 420px; text-align: center; }}
        p {{ color: #59636E; margin: 0; }}
    </style>
</head>
<body>
    <div class="container">
        <p>{text}</p>
    </div>
    <script>
      (function () {{
        var allowed = {origins};
        var provider = {provider};
        var message = {message};

        function originAllowed(origin) {{
          var url;
          try {{
            url = new URL(origin);
          }} catch (err) {{
            return false;
          }}
          var full = (url.protocol + "//" + url.host).toLowerCase();
          for (var i = 0; i < allowed.length; i++) {{
            var entry = allowed[i].trim().replace(/\\/+$/, "").toLowerCase();
            if (!entry) {{
              continue;
            }}
            if (entry.indexOf("://") !== -1) {{
              if (entry === full) {{
                return true;
              }}
            }} else if (entry === url.host.toLowerCase() || entry === url.hostname.toLowerCase()) {{
              return true;
            }}
          }}
          return false;
        }}

        function receiveMessage(e) {{
          if (!originAllowed(e.origin)) {{
            return;
          }}
          window.opener.postMessage(message, e.origin);
          window.removeEventListener("message", receiveMessage, false);
        }}

        if (!window.opener) {{
          return;
        }}
        window.addEventListener("message", receiveMessage, false);
        window.opener.postMessage("authorizing:" + provider, "*");
      }})();
    </script>
</body>
</html>
"""

# ============== Error Page ==============

ERROR_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Authorization failed</title>
</head>
<body>
    <h1>{error}</h1>
</body>
</html>
"""


def script_json(value) -> str:
    """JSON-encode a value for inclusion inside a <script> element."""
    return (
        json.dumps(value)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def authorization_message(provider: str, status: str, content: dict) -> str:
    """Build the string Decap CMS expects: authorization:<provider>:<status>:<json>."""
    return f"authorization:{provider}:{status}:{json.dumps(content)}"


def render_success_page(provider: str, token: str, origins) -> str:
    message = authorization_message(provider, "success", {"token": token, "provider": provider})
    return BRIDGE_PAGE.format(
        title="Authorized",
        text="Authorized. This window will close shortly.",
        origins=script_json(list(origins)),
        provider=script_json(provider),
        message=script_json(message),
    )


def render_failure_page(provider: str, error: str, origins) -> str:
    message = authorization_message(provider, "error", {"message": error, "provider": provider})
    return BRIDGE_PAGE.format(
        title="Authorization failed",
        text=html.escape(f"Authorization failed: {error}"),
        origins=script_json(list(origins)),
        provider=script_json(provider),
        message=script_json(message),
    )


def render_error_page(error: str) -> str:
    return ERROR_PAGE.format(error=html.escape(error))
