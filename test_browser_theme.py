import random

import pytest

from generate_theme import ThemeCache, ThemeOptions, generate_theme


def _apply_theme(css, values):
    """What the runtime switcher does: drop the Less definitions, swap variable names for values."""
    lines = [line for line in css.splitlines() if not line.startswith("@")]
    text = "\n".join(lines)
    for name, value in values.items():
        text = text.replace(name, value)
    return text


@pytest.fixture
def themed_page_html(antd_project, fake_compiler):
    options = ThemeOptions(antd_dir=str(antd_project["antd"]), styles_dirs=[str(antd_project["styles"])])
    css = generate_theme(options, cache=ThemeCache(), compiler=fake_compiler, rng=random.Random(0))
    assert css
    style = _apply_theme(css, {"@primary-color": "#ff0000"})
    return f"""
    <html>
      <head><style>{style}</style></head>
      <body>
        <button class="ant-btn-primary">Primary</button>
        <a class="header-link" style="border-width: 1px; border-style: solid">Link</a>
        <h1 class="app-header">Header</h1>
      </body>
    </html>
    """


def test_switched_theme_recolors_elements(themed_page_html):
    pytest.importorskip("playwright.sync_api")
    from playwright.sync_api import Error, sync_playwright

    with sync_playwright() as pw:
        browser = None
        try:
            browser = pw.chromium.launch(channel="chromium", headless=True)
        except Error:
            try:
                browser = pw.chromium.launch(headless=True)
            except Error as exc:
                pytest.skip(f"Chromium is not available for Playwright: {exc}")

        page = browser.new_page()
        page.set_content(themed_page_html)

        computed = page.evaluate(
            """
            () => ({
              button: getComputedStyle(document.querySelector('.ant-btn-primary')).backgroundColor,
              buttonText: getComputedStyle(document.querySelector('.ant-btn-primary')).color,
              link: getComputedStyle(document.querySelector('.header-link')).borderTopColor,
              header: getComputedStyle(document.querySelector('.app-header')).color,
            })
            """
        )
        browser.close()

    assert computed["button"] == "rgb(255, 0, 0)"
    assert computed["buttonText"] == "rgb(255, 255, 255)"
    assert computed["link"] == "rgb(255, 0, 0)"
    assert computed["header"] == "rgb(255, 0, 0)"
