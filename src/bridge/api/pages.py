"""Static HTML pages served by the bridge.

Every value that came from a request or the catalog goes through
``escape`` before it lands in markup.
"""

from html import escape
from urllib.parse import quote

_STYLE = """
body { font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial, sans-serif;
       margin: 40px; color: #111; }
.btn { display: inline-block; padding: 10px 16px; border-radius: 8px; text-decoration: none;
       border: 1px solid #222; font-weight: 600; }
.row { display: flex; gap: 12px; flex-wrap: wrap; }
.muted { color: #666; font-size: 14px; margin-top: 8px; }
form { display: flex; gap: 12px; flex-wrap: wrap; margin-bottom: 16px; }
input, button { padding: 10px 12px; font-size: 16px; }
"""


def _page(title: str, body: str) -> str:
    return f"""<!doctype html>
<html lang="en"><head><meta charset="utf-8"/>
<meta name="viewport" content="width=device-width,initial-scale=1"/>
<title>{escape(title)}</title>
<style>{_STYLE}</style></head>
<body>
{body}
</body></html>"""


def index_page() -> str:
    return _page(
        "Crypto payments",
        '<h1>Crypto payments</h1>\n<p><a class="btn" href="/pay">Pay an order with crypto</a></p>',
    )


def pay_form_page() -> str:
    return _page(
        "Pay with Crypto",
        """<h2>Pay with Crypto</h2>
<p class="muted">Enter your order number (e.g. <strong>#1001</strong>) or paste the order ID.</p>
<form method="POST" action="/pay/start" accept-charset="UTF-8">
  <input required name="order" placeholder="Order # (e.g. #1001) or Order ID" />
  <input name="email" placeholder="Email (optional)" />
  <button type="submit">Open Invoice</button>
</form>""",
    )


def invoice_frame_page(order_name: str | None, invoice_url: str) -> str:
    title = f"{order_name} - Crypto Invoice" if order_name else "Crypto Invoice"
    return f"""<!doctype html>
<html><head><meta charset="utf-8"/>
<meta name="viewport" content="width=device-width,initial-scale=1"/>
<title>{escape(title)}</title>
<style>html,body{{height:100%}}body{{margin:0}}</style></head>
<body>
  <iframe src="{escape(invoice_url, quote=True)}" allow="payment *; clipboard-read; clipboard-write"
          style="width:100%;height:100%;border:0"></iframe>
</body></html>"""


def message_page(title: str, message: str) -> str:
    return _page(title, f"<h2>{escape(title)}</h2>\n<p>{escape(message)}</p>")


def success_page(store_url: str, order: str | None) -> str:
    reference = f'<p class="muted">Order reference: <code>{escape(order)}</code></p>' if order else ""
    return _page(
        "Payment Success",
        f"""<h1>Thanks, crypto payment received</h1>
<p>We'll start processing your order shortly.</p>
<p><a class="btn" href="{escape(store_url, quote=True)}">Return to store</a></p>
{reference}
<p class="muted">You can safely close this tab.</p>""",
    )


def cancel_page(app_url: str, store_url: str, order: str | None) -> str:
    if order:
        reopen_url = f"{app_url}/osr/invoice-url?orderId={quote(order, safe='')}"
    else:
        reopen_url = f"{app_url}/"
    return _page(
        "Payment Canceled",
        f"""<h1>Payment canceled</h1>
<p>No payment was taken. You can reopen the invoice or go back to the store.</p>
<div class="row">
  <a class="btn" href="{escape(reopen_url, quote=True)}">Reopen invoice</a>
  <a class="btn" href="{escape(store_url, quote=True)}">Return to store</a>
</div>""",
    )
