from clubevents.sanitizer import TRUNCATION_MARKER, clean_html

PAGE = """
<html>
<head><title>Chess Club</title><meta name="x" content="y"><style>p { color: red }</style></head>
<body>
  <div class="main-menu">Home About Join</div>
  <aside class="Sidebar-widget">Recent posts</aside>
  <div id="cc" class="cookie-banner">We use cookies</div>
  <div class="popup newsletter">Subscribe!</div>
  <div class="modal-backdrop">Login</div>
  <nav>Events calendar</nav>
  <h1>Upcoming   events</h1>
  <p>Winter Gala 2026

     January 17</p>
  <script>var tracking = true;</script>
  <noscript>Enable JS</noscript>
  <iframe src="https://maps.example.com"></iframe>
  <svg><text>logo</text></svg>
  <footer>Contact us</footer>
</body>
</html>
"""


def test_strips_non_content_and_noise_elements():
    text = clean_html(PAGE)

    assert text == "Events calendar Upcoming events Winter Gala 2026 January 17 Contact us"


def test_truncates_long_content_with_marker():
    html = "<html><body><p>" + "a" * 13000 + "</p></body></html>"

    text = clean_html(html)

    assert text.endswith(TRUNCATION_MARKER)
    assert len(text) == 12000 + len(TRUNCATION_MARKER)


def test_short_content_is_not_marked():
    assert clean_html("<p>Spring Open</p>", limit=50) == "Spring Open"


def test_custom_limit():
    assert clean_html("<p>abcdefghij</p>", limit=4) == "abcd" + TRUNCATION_MARKER


def test_inline_markup_does_not_split_words():
    assert clean_html("<p><b>Win</b>ter <i>Gala</i></p>") == "Winter Gala"


def test_empty_html():
    assert clean_html("") == ""
