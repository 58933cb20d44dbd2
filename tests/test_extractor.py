"""Tests for docmirror.extractor module."""

from __future__ import annotations

import pytest

from conftest import BASE, FakePage, fast_settings, row
from docmirror.errors import NavigationError
from docmirror.extractor import (
    expand_all,
    extract_roots,
    extract_tree,
    rows_to_records,
    scan_flat_records,
    wait_for_nav_tree,
)
from docmirror.tree import MULTI_ROOT_TITLE, FlatRecord, count_links, flatten_tree
from docmirror.urls import UrlScope

START = BASE + "/doc/start"
SCOPE = UrlScope(base_url=START)


class TestRowsToRecords:
    def test_glyphs_stripped_and_href_resolved(self):
        records = rows_to_records([row(0, "▶ Guides ▼", "/doc/guides")], SCOPE)
        assert records == [
            FlatRecord(level=0, title="Guides", url=BASE + "/doc/guides")
        ]

    def test_title_falls_back_to_last_segment(self):
        records = rows_to_records([row(1, "  ", "/doc/api/widgets/")], SCOPE)
        assert records[0].title == "widgets"

    def test_folder_without_text_is_untitled(self):
        records = rows_to_records([row(0, "")], SCOPE)
        assert records == [FlatRecord(level=0, title="untitled", url=None)]

    def test_rejected_href_becomes_folder(self):
        records = rows_to_records(
            [
                row(0, "Blog", "/blog/post"),
                row(0, "Elsewhere", "https://other.example.org/doc/a"),
                row(0, "Script", "javascript:void(0)"),
            ],
            SCOPE,
        )
        assert [r.url for r in records] == [None, None, None]
        assert [r.title for r in records] == ["Blog", "Elsewhere", "Script"]

    def test_bad_level_becomes_zero(self):
        records = rows_to_records(
            [{"level": "deep", "text": "A", "href": None}, {"level": -2, "text": "B"}],
            SCOPE,
        )
        assert [r.level for r in records] == [0, 0]


class TestWaitForNavTree:
    @pytest.mark.asyncio
    async def test_rows_appear_after_polling(self, settings):
        page = FakePage(ready_after=1)
        assert await wait_for_nav_tree(page, settings) is True
        assert page.polls == 2
        assert page.waited_selectors == []

    @pytest.mark.asyncio
    async def test_fallback_selectors_tried_in_order(self, settings):
        page = FakePage(ready_after=None, fallback_found={"nav"})
        assert await wait_for_nav_tree(page, settings) is True
        assert page.waited_selectors == [".ant-tree", "[class*='tree']", "nav"]

    @pytest.mark.asyncio
    async def test_nothing_found(self, settings):
        page = FakePage(ready_after=None)
        assert await wait_for_nav_tree(page, settings) is False
        assert len(page.waited_selectors) == 4


class TestExpandAll:
    @pytest.mark.asyncio
    async def test_repeats_until_nothing_clicked(self, settings):
        page = FakePage(expand_rounds=[3, 2])
        assert await expand_all(page, settings) == 5
        assert page.expand_calls == 3

    @pytest.mark.asyncio
    async def test_script_error_stops_expansion(self, settings):
        page = FakePage(expand_error=RuntimeError("detached"))
        assert await expand_all(page, settings) == 0
        assert page.expand_calls == 1

    @pytest.mark.asyncio
    async def test_round_cap(self):
        page = FakePage(expand_rounds=[1] * 10)
        total = await expand_all(page, fast_settings(max_expand_rounds=3))
        assert total == 3
        assert page.expand_calls == 3


class _BrokenScanPage(FakePage):
    async def evaluate(self, expression, arg=None):
        raise RuntimeError("Execution context was destroyed")


@pytest.mark.asyncio
async def test_scan_failure_raises_navigation_error():
    with pytest.raises(NavigationError, match="scan"):
        await scan_flat_records(_BrokenScanPage(), SCOPE)


class TestExtractTree:
    @pytest.mark.asyncio
    async def test_full_tree(self, settings):
        page = FakePage(
            tree_rows={
                START: [
                    row(0, "Guides"),
                    row(1, "Intro", "/doc/intro"),
                    row(2, "Setup", "setup"),
                    row(1, "Empty folder"),
                    row(0, "Blog", "/blog/x"),
                    row(0, "API", "/doc/api#top"),
                ]
            },
            expand_rounds=[3, 2],
        )

        tree = await extract_tree(page, START + "#frag", settings)

        assert tree.title == "Root"
        assert tree.url == START
        assert page.visited == [START]
        assert page.goto_kwargs[0]["wait_until"] == "networkidle"
        assert page.expand_calls == 3
        assert [link.title for link in flatten_tree(tree)] == [
            "Root",
            "Intro",
            "Setup",
            "API",
        ]
        guides = tree.children[0]
        assert guides.is_folder
        assert [child.title for child in guides.children] == ["Intro"]
        assert guides.children[0].children[0].url == BASE + "/doc/setup"
        assert tree.children[1].url == BASE + "/doc/api"

    @pytest.mark.asyncio
    async def test_no_container_gives_root_only(self, settings):
        page = FakePage(ready_after=None)
        tree = await extract_tree(page, START, settings)
        assert tree.url == START
        assert tree.children == []
        assert count_links(tree) == 1

    @pytest.mark.asyncio
    async def test_navigation_failure_still_scans(self, settings):
        page = FakePage(fail_urls={START})
        tree = await extract_tree(page, START, settings)
        assert page.visited == [START]
        assert tree.url == START

    @pytest.mark.asyncio
    async def test_subdomains_follow_settings(self):
        page = FakePage(
            tree_rows={START: [row(0, "Ref", "https://api.example.com/doc/ref")]}
        )
        narrow = await extract_tree(page, START, fast_settings())
        assert count_links(narrow) == 1

        wide = await extract_tree(page, START, fast_settings(include_subdomains=True))
        assert count_links(wide) == 2


@pytest.mark.asyncio
async def test_extract_roots_composes_trees(settings):
    second = BASE + "/doc/other"
    page = FakePage(
        tree_rows={
            START: [row(0, "A", "/doc/a")],
            second: [row(0, "B", "/doc/b")],
        }
    )

    tree = await extract_roots(page, [START, second], settings)

    assert tree.title == MULTI_ROOT_TITLE
    assert page.visited == [START, second]
    assert [link.url for link in flatten_tree(tree)] == [
        START,
        BASE + "/doc/a",
        second,
        BASE + "/doc/b",
    ]
