"""Tests for the root-scoped filesystem layer and its MCP tools."""

import asyncio

import pytest
from pydantic import ValidationError

from tam_filesystem.core.filesystem_operations import format_size
from tam_filesystem.errors import AccessDeniedError
from tam_filesystem.models import (
    GetFileInfoInput,
    ListAllowedDirectoriesInput,
    ListDirectoryInput,
    ReadTextFileInput,
    SearchFilesInput,
    WriteFileInput,
)
from tam_filesystem.session import bind_services, build_services
from tam_filesystem.tools import filesystem_tools


@pytest.fixture
def bound_services(config):
    services = build_services(config)
    bind_services(services)
    yield services
    bind_services(None)


@pytest.mark.parametrize(
    "size,expected",
    [(0, "0 B"), (512, "512 B"), (1536, "1.50 KB"), (5 * 1024 * 1024, "5.00 MB")],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


def test_relative_paths_resolve_against_vault_root(filesystem, vault):
    assert filesystem.validate_path("tasks/a.md") == vault / "tasks" / "a.md"
    assert filesystem.validate_path(str(vault / "tasks")) == vault / "tasks"


def test_paths_outside_allowed_directories_are_denied(filesystem, tmp_path):
    with pytest.raises(AccessDeniedError):
        filesystem.validate_path(tmp_path / "elsewhere.md")
    with pytest.raises(AccessDeniedError):
        filesystem.read_text("../elsewhere.md")


def test_read_text_head_and_tail(filesystem, write_note):
    write_note("notes/lines.txt", "one\ntwo\nthree\nfour\n")

    assert filesystem.read_text("notes/lines.txt", head=2) == "one\ntwo"
    assert filesystem.read_text("notes/lines.txt", tail=2) == "three\nfour"
    with pytest.raises(ValueError):
        filesystem.read_text("notes/lines.txt", head=1, tail=1)


def test_write_text_creates_parents_and_respects_exclusive(filesystem, vault):
    target = filesystem.write_text("deep/nested/note.md", "hello")

    assert target == vault / "deep" / "nested" / "note.md"
    assert target.read_text(encoding="utf-8") == "hello"
    with pytest.raises(FileExistsError):
        filesystem.write_text(target, "again", exclusive=True)


def test_list_directory_is_sorted(filesystem, write_note):
    write_note("box/b.md", "")
    write_note("box/a.txt", "")
    write_note("box/sub/c.md", "")
    write_note("box/image.png", "")

    entries = filesystem.list_directory("box")

    assert [entry.display() for entry in entries] == [
        "[FILE] a.txt",
        "[FILE] b.md",
        "[FILE] image.png",
        "[DIR] sub",
    ]
    assert [path.name for path in filesystem.list_allowed_files(filesystem.validate_path("box"))] == [
        "a.txt",
        "b.md",
    ]


def test_search_files_substring_glob_and_excludes(filesystem, write_note, vault):
    write_note("projects/Review Q1.md", "")
    write_note("projects/archive/review-old.md", "")
    write_note("projects/notes.txt", "")

    substring = filesystem.search_files("projects", "review")
    glob = filesystem.search_files("projects", "*.md", ["archive"])

    assert substring == [
        vault / "projects" / "Review Q1.md",
        vault / "projects" / "archive" / "review-old.md",
    ]
    assert glob == [vault / "projects" / "Review Q1.md"]


def test_file_info_reports_metadata(filesystem, write_note):
    write_note("note.md", "x" * 2048)

    info = filesystem.file_info("note.md")

    assert info["size"] == 2048
    assert info["size_display"] == "2.00 KB"
    assert info["type"] == "file"
    assert len(info["permissions"]) == 3


# ==============================================================================
# TOOLS
# ==============================================================================


def test_filesystem_tools(bound_services, vault):
    written = asyncio.run(filesystem_tools.write_file(WriteFileInput(path="inbox/idea.md", content="# Idea\nBody")))
    read = asyncio.run(filesystem_tools.read_text_file(ReadTextFileInput(path="inbox/idea.md", head=1)))
    listing = asyncio.run(filesystem_tools.list_directory(ListDirectoryInput(path="inbox")))
    found = asyncio.run(filesystem_tools.search_files(SearchFilesInput(path=".", pattern="idea")))
    info = asyncio.run(filesystem_tools.get_file_info(GetFileInfoInput(path="inbox/idea.md")))
    allowed = asyncio.run(filesystem_tools.list_allowed_directories(ListAllowedDirectoriesInput()))

    assert written == {"path": str(vault / "inbox" / "idea.md"), "status": "written", "size": 11}
    assert read["content"] == "# Idea"
    assert listing["entries"] == [{"name": "idea.md", "type": "file"}]
    assert listing["listing"] == "[FILE] idea.md"
    assert found["matches"] == [str(vault / "inbox" / "idea.md")]
    assert info["type"] == "file"
    assert allowed["allowed_directories"] == [str(vault)]
    assert allowed["config"]["paths"]["prompts"] == "tasks/prompts"


def test_write_file_tool_rejects_disallowed_extension(bound_services):
    with pytest.raises(ValueError):
        asyncio.run(filesystem_tools.write_file(WriteFileInput(path="run.sh", content="echo hi")))


def test_read_text_file_input_rejects_head_and_tail():
    with pytest.raises(ValidationError):
        ReadTextFileInput(path="a.md", head=1, tail=1)
