"""Smallest possible app: answer every request with an empty 200.

Run with:
    hyperconnect serve examples.minimal:app
"""

from hyperconnect import App, to_request_handler
from hyperconnect.middleware import close_headers, end, status

ok = status(200).chain(lambda _: close_headers()).chain(lambda _: end())

app = App()
app.use(to_request_handler(ok))
