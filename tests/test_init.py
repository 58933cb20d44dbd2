from __future__ import annotations

from pathlib import Path

import pytest

import docmirror
from conftest import BASE, FakePage, fast_settings, make_session_factory, row


def test_public_names_resolve() -> None:
    for name in docmirror.__all__:
        assert getattr(docmirror, name) is not None


def test_errors_share_a_base() -> None:
    for name in docmirror.__all__:
        obj = getattr(docmirror, name)
        if isinstance(obj, type) and name.endswith("Error"):
            assert issubclass(obj, docmirror.DocMirrorError)


@pytest.mark.asyncio
async def test_run_pipeline_async_via_package(tmp_path: Path) -> None:
    start = BASE + "/doc/start"
    page = FakePage(tree_rows={start: [row(0, "A", "/doc/a")]})

    result = await docmirror.run_pipeline_async(
        docmirror.PipelineOptions(
            start_urls=[start],
            stage=docmirror.Stage.ALL,
            output_dir=tmp_path / "out",
            checkpoint_path=tmp_path / "links.json",
            settings=fast_settings(),
        ),
        session_factory=make_session_factory(page),
    )

    assert result.crawl_state.success_count == 2
    assert (tmp_path / "out" / "doc" / "a.html").is_file()
    assert docmirror.LinkStore(tmp_path / "links.json").load().total_count == 2
