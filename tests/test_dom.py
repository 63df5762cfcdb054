from __future__ import annotations

import unittest

from app.scraping.dom import SelectorSyntaxError, SoupDocument

PAGE = """
<html><body>
  <ul class="list">
    <li class="item first"><a href="/a"><span class="name">Alpha</span></a> extra</li>
    <li class="item"><span class="name">Beta <b>bold</b></span></li>
  </ul>
  <script>var x = 1;</script>
</body></html>
"""


class TestSoupDocument(unittest.TestCase):
    def setUp(self) -> None:
        self.document = SoupDocument.from_html(PAGE, url="https://shop.example/search")

    def test_select_all_in_document_order(self) -> None:
        names = [node.text() for node in self.document.select_all(".name")]
        self.assertEqual(names, ["Alpha", "Beta bold"])

    def test_closest_includes_self_and_ancestors(self) -> None:
        span = self.document.select_first("span.name")
        assert span is not None
        self.assertEqual(span.closest("a[href]").attr("href"), "/a")
        self.assertEqual(span.closest("span"), span)
        self.assertIsNone(span.closest("table"))

    def test_own_text_excludes_children(self) -> None:
        item = self.document.select_first("li.item")
        assert item is not None
        self.assertEqual(item.own_text(), "extra")
        self.assertEqual(item.text(), "Alpha extra")
        self.assertEqual(item.classes, ("item", "first"))

    def test_parent_stops_at_root(self) -> None:
        html = self.document.select_first("html")
        assert html is not None
        self.assertIsNone(html.parent())

    def test_depth_and_identity(self) -> None:
        body = self.document.body()
        span = self.document.select_first("span.name")
        assert span is not None
        self.assertEqual(span.depth_from(body), 4)
        self.assertEqual(self.document.select_first("span.name"), span)
        self.assertEqual(len({span, self.document.select_first("span.name")}), 1)

    def test_invalid_pattern_raises(self) -> None:
        with self.assertRaises(SelectorSyntaxError):
            self.document.select_all("div[")


if __name__ == "__main__":
    unittest.main()
