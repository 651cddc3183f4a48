"""Tests for the pre-upload relative link audit."""

from pagewright.services.link_checker import find_broken_links


def _page(body: str) -> str:
    return f'<html><head><link rel="stylesheet" href="STYLE" /></head><body>{body}</body></html>'


class TestFindBrokenLinks:
    def test_consistent_site_has_no_broken_links(self):
        documents = {
            "index.html": _page('<a href="about/">About</a>').replace("STYLE", "styles.css"),
            "about/index.html": _page('<a href="../">Home</a>').replace("STYLE", "../styles.css"),
        }
        assert find_broken_links(documents, ["styles.css"]) == []

    def test_missing_page_is_reported(self):
        documents = {"index.html": _page('<a href="pricing/">Pricing</a>').replace("STYLE", "styles.css")}
        broken = find_broken_links(documents, ["styles.css"])
        assert len(broken) == 1
        assert broken[0].url == "pricing/"
        assert broken[0].resolved == "pricing/index.html"

    def test_escaping_the_root_is_reported(self):
        documents = {"index.html": _page('<a href="../outside/">x</a>').replace("STYLE", "styles.css")}
        assert find_broken_links(documents, ["styles.css"])[0].resolved.startswith("..")

    def test_external_and_fragment_links_are_ignored(self):
        body = (
            '<a href="https://example.com">x</a>'
            '<a href="#top">x</a>'
            '<a href="mailto:hi@example.com">x</a>'
            '<img src="https://placehold.co/1200x800?text=Image" />'
        )
        documents = {"index.html": _page(body).replace("STYLE", "styles.css")}
        assert find_broken_links(documents, ["styles.css"]) == []

    def test_query_and_fragment_are_stripped(self):
        documents = {
            "index.html": _page('<a href="about/?ref=nav#team">x</a>').replace("STYLE", "styles.css"),
            "about/index.html": _page("").replace("STYLE", "../styles.css"),
        }
        assert find_broken_links(documents, ["styles.css"]) == []
