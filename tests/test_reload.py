import logging

import pytest

from sitepress.config import Settings
from sitepress.runtime.reload import LiveReloader, ReloadEvent, WatchLayout, classify


@pytest.mark.parametrize(
    "path, expected",
    [
        ("src/assets/scss/style.scss", ReloadEvent.CSS_RELOAD),
        ("src/assets/scss/_variables.scss", ReloadEvent.CSS_RELOAD),
        ("src/assets/scss/notes.txt", ReloadEvent.CSS_RELOAD),
        ("src/components/widget.sass", ReloadEvent.CSS_RELOAD),
        ("src/assets/js/app.js", ReloadEvent.JS_RELOAD),
        ("src/pages/about.ejs", ReloadEvent.PAGE_RELOAD),
        ("src/pages/about.jinja", ReloadEvent.PAGE_RELOAD),
        ("data/site.json", ReloadEvent.PAGE_RELOAD),
        ("README.md", ReloadEvent.PAGE_RELOAD),
        ("", ReloadEvent.PAGE_RELOAD),
    ],
)
def test_classify(path, expected):
    assert classify(path) is expected


def test_script_outside_script_tree_is_page_reload():
    assert classify("src/components/helper.js") is ReloadEvent.PAGE_RELOAD


def test_non_script_inside_script_tree_is_page_reload():
    assert classify("src/assets/js/README.md") is ReloadEvent.PAGE_RELOAD


def test_stylesheet_rule_wins_over_script_rule():
    assert classify("src/assets/js/theme.scss") is ReloadEvent.CSS_RELOAD


def test_absolute_and_windows_paths():
    assert classify("/home/me/site/src/assets/js/app.js") is ReloadEvent.JS_RELOAD
    assert classify("C:\\site\\src\\assets\\scss\\style.scss") is ReloadEvent.CSS_RELOAD
    assert classify("C:\\site\\src\\assets\\js\\app.js") is ReloadEvent.JS_RELOAD


def test_tree_match_is_by_segment():
    assert classify("src/assets/jsx/app.js") is ReloadEvent.PAGE_RELOAD


def test_layout_from_settings(tmp_path):
    settings = Settings(root=tmp_path, src_dir="site")
    layout = WatchLayout.from_settings(settings)

    assert layout.scripts_tree == ("site", "assets", "js")
    assert classify(tmp_path / "site" / "assets" / "js" / "a.js", layout) is ReloadEvent.JS_RELOAD
    assert classify("src/assets/js/a.js", layout) is ReloadEvent.PAGE_RELOAD


class TestLiveReloader:
    @pytest.fixture
    def reloader(self, settings):
        return LiveReloader(settings)

    def test_stylesheet_change_recompiles(self, reloader, settings):
        event = reloader.handle_change(settings.style_entry)

        assert event is ReloadEvent.CSS_RELOAD
        assert "#336699" in reloader.stylesheet_output.read_text(encoding="utf-8")

    def test_broken_stylesheet_emits_nothing(self, reloader, settings, caplog):
        reloader.handle_change(settings.style_entry)
        settings.style_entry.write_text("body { color: $oops; }")

        with caplog.at_level(logging.ERROR):
            event = reloader.handle_change(settings.style_entry)

        assert event is None
        assert "SCSS compilation error" in caplog.text
        # Last good CSS stays in place
        assert "#336699" in reloader.stylesheet_output.read_text(encoding="utf-8")

    def test_script_change_copies(self, reloader, settings):
        script = settings.scripts_dir / "main.js"
        script.write_text("console.log('changed');\n")

        event = reloader.handle_change(script)

        assert event is ReloadEvent.JS_RELOAD
        assert (reloader.scripts_output / "main.js").read_text() == "console.log('changed');\n"

    def test_script_copy_failure_emits_nothing(self, reloader, settings):
        import shutil

        path = settings.scripts_dir / "main.js"
        shutil.rmtree(settings.scripts_dir)

        assert reloader.handle_change(path) is None

    def test_page_change_has_no_side_effects(self, reloader, settings):
        event = reloader.handle_change(settings.pages_dir / "about.jinja")

        assert event is ReloadEvent.PAGE_RELOAD
        assert not settings.public_dir.exists()

    def test_initial_sync(self, reloader):
        reloader.initial_sync()

        assert reloader.stylesheet_output.is_file()
        assert (reloader.scripts_output / "main.js").is_file()
        assert (reloader.images_output / "logo.png").read_bytes() == b"\x89PNG\r\n"

    def test_image_change_recopies_and_reloads_page(self, reloader, settings):
        image = settings.images_dir / "icons" / "tick.svg"
        image.parent.mkdir()
        image.write_text("<svg/>")

        event = reloader.handle_change(image)

        assert event is ReloadEvent.PAGE_RELOAD
        assert (reloader.images_output / "icons" / "tick.svg").read_text() == "<svg/>"

    def test_missing_images_tree_is_not_an_error(self, reloader, settings):
        import shutil

        shutil.rmtree(settings.images_dir)

        assert reloader.copy_images() is True
        assert not reloader.images_output.exists()
