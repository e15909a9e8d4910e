"""Tests for tool dispatch and the built-in file tools."""

import json

import pytest

from webgen.events import GeneratorEvents
from webgen.messages import FileChange, FunctionCall, ToolCall
from webgen.tools.dispatcher import EMPTY_PROJECT_LISTING, NO_MATCHES, ToolDispatcher
from webgen.tools.templates import BUILTIN_TEMPLATES, normalize_template
from webgen.tools.vfs import VirtualFileSystem


def make_call(name: str, args=None, raw: str = None) -> ToolCall:
    arguments = raw if raw is not None else json.dumps(args if args is not None else {})
    return ToolCall(id="call_1", function=FunctionCall(name=name, arguments=arguments))


@pytest.fixture
def results():
    return []


@pytest.fixture
def dispatcher(vfs, results):
    events = GeneratorEvents(on_tool_result=lambda name, args, result: results.append((name, args, result)))
    return ToolDispatcher(vfs, events=events)


@pytest.mark.asyncio
async def test_list_files(dispatcher):
    """Test listing sorted paths."""
    outcome = await dispatcher.execute(make_call("list_files"))

    assert outcome.result == "index.html\nsrc/main.js\nsrc/styles.css"
    assert outcome.changes == []


@pytest.mark.asyncio
async def test_list_files_empty():
    """Test the empty-project sentinel."""
    outcome = await ToolDispatcher(VirtualFileSystem()).execute(make_call("list_files"))

    assert outcome.result == EMPTY_PROJECT_LISTING


@pytest.mark.asyncio
async def test_read_files_mixed(dispatcher):
    """Test reading present and missing files in one call."""
    outcome = await dispatcher.execute(make_call("read_files", {"paths": ["src/styles.css", "nope.js"]}))

    assert outcome.result == (
        "=== src/styles.css ===\nbody { margin: 0; }\n"
        "\n\n"
        "=== nope.js ===\nError: file not found"
    )


@pytest.mark.asyncio
async def test_read_files_requires_paths(dispatcher):
    """Test that an empty path list is an error."""
    outcome = await dispatcher.execute(make_call("read_files", {"paths": []}))

    assert outcome.result == "Error: no paths provided"


@pytest.mark.asyncio
async def test_write_file_created_and_modified(dispatcher, vfs):
    """Test write_file actions and change records."""
    outcome = await dispatcher.execute(make_call("write_file", {"path": "/src/App.js", "content": "abc"}))

    assert outcome.result == "OK — created: src/App.js (3 chars)"
    assert outcome.changes == [FileChange(path="src/App.js", action="created")]

    outcome = await dispatcher.execute(make_call("write_file", {"path": "src/App.js", "content": "abcd"}))

    assert outcome.result == "OK — modified: src/App.js (4 chars)"
    assert vfs.snapshot()["src/App.js"] == "abcd"


@pytest.mark.asyncio
async def test_write_file_validation(dispatcher):
    """Test missing path and non-string content."""
    outcome = await dispatcher.execute(make_call("write_file", {"content": "x"}))
    assert outcome.result == "Error: path is required"

    outcome = await dispatcher.execute(make_call("write_file", {"path": "a.js", "content": 5}))
    assert outcome.result == "Error: content must be a string"
    assert outcome.changes == []


@pytest.mark.asyncio
async def test_patch_file(dispatcher, vfs):
    """Test patching an existing file."""
    outcome = await dispatcher.execute(make_call("patch_file", {
        "path": "src/main.js",
        "patches": [
            {"search": "const count = 0;", "replace": "let count = 1;"},
            {"search": "missing", "replace": "x"},
        ],
    }))

    assert outcome.result == 'patch #1: ✓ applied\npatch #2: ✗ not found — "missing"'
    assert outcome.changes == [FileChange(path="src/main.js", action="modified")]
    assert vfs.snapshot()["src/main.js"].startswith("let count = 1;")


@pytest.mark.asyncio
async def test_patch_file_no_change_records_nothing(dispatcher):
    """Test that a patch batch with no matches leaves no change record."""
    outcome = await dispatcher.execute(make_call("patch_file", {
        "path": "src/main.js",
        "patches": [{"search": "missing", "replace": "x"}],
    }))

    assert outcome.changes == []


@pytest.mark.asyncio
async def test_patch_file_single_object(dispatcher, vfs):
    """Test that a bare patch object is accepted."""
    await dispatcher.execute(make_call("patch_file", {
        "path": "src/styles.css",
        "patches": {"search": "0", "replace": "8px"},
    }))

    assert vfs.snapshot()["src/styles.css"] == "body { margin: 8px; }\n"


@pytest.mark.asyncio
async def test_patch_file_errors(dispatcher):
    """Test missing file and missing patches."""
    outcome = await dispatcher.execute(make_call("patch_file", {"path": "nope.js", "patches": []}))
    assert outcome.result == 'Error: file not found — "nope.js"'

    outcome = await dispatcher.execute(make_call("patch_file", {"path": "src/main.js"}))
    assert outcome.result == "Error: no patches provided"


@pytest.mark.asyncio
async def test_delete_file(dispatcher, vfs):
    """Test deleting present and missing files."""
    outcome = await dispatcher.execute(make_call("delete_file", {"path": "src/styles.css"}))

    assert outcome.result == "OK — deleted: src/styles.css"
    assert outcome.changes == [FileChange(path="src/styles.css", action="deleted")]
    assert "src/styles.css" not in vfs

    before = vfs.snapshot()
    outcome = await dispatcher.execute(make_call("delete_file", {"path": "src/styles.css"}))
    assert outcome.result == 'Error: file not found — "src/styles.css"'
    assert outcome.changes == []
    assert vfs.snapshot() == before


@pytest.mark.asyncio
async def test_search_in_files(dispatcher):
    """Test per-line regex search."""
    outcome = await dispatcher.execute(make_call("search_in_files", {"pattern": r"count\b"}))

    assert outcome.result == "src/main.js:1: const count = 0;\nsrc/main.js:2: console.log(count);"


@pytest.mark.asyncio
async def test_search_in_files_no_matches(dispatcher):
    """Test the no-match sentinel."""
    outcome = await dispatcher.execute(make_call("search_in_files", {"pattern": "zzz"}))

    assert outcome.result == NO_MATCHES


@pytest.mark.asyncio
async def test_search_in_files_invalid_regex(dispatcher):
    """Test invalid patterns are reported."""
    outcome = await dispatcher.execute(make_call("search_in_files", {"pattern": "("}))

    assert outcome.result == 'Error: invalid regex pattern — "("'


@pytest.mark.asyncio
async def test_init_project_replaces_files(vfs):
    """Test init_project replaces the map and reports stale files."""
    templates_seen = []
    events = GeneratorEvents(on_template_change=lambda name, files: templates_seen.append((name, files)))
    dispatcher = ToolDispatcher(vfs, events=events)

    outcome = await dispatcher.execute(make_call("init_project", {"template": "vite-react-ts"}))

    expected = set(normalize_template(BUILTIN_TEMPLATES["vite-react-ts"]))
    assert outcome.result == f'OK — initialized project with template "vite-react-ts" ({len(expected)} files)'
    assert set(vfs.paths()) == expected
    deleted = {c.path for c in outcome.changes if c.action == "deleted"}
    created = {c.path for c in outcome.changes if c.action == "created"}
    assert deleted == {"index.html", "src/main.js", "src/styles.css"} - expected
    assert created == expected
    assert templates_seen[0][0] == "vite-react-ts"


@pytest.mark.asyncio
async def test_init_project_unknown_template(dispatcher, vfs):
    """Test unknown templates leave files untouched."""
    before = vfs.snapshot()

    outcome = await dispatcher.execute(make_call("init_project", {"template": "angular"}))

    assert outcome.result.startswith('Error: unknown template "angular". Use one of: ')
    assert "vite-react-ts" in outcome.result
    assert vfs.snapshot() == before


@pytest.mark.asyncio
async def test_init_project_custom_catalog():
    """Test an injected catalog with {code} entries."""
    vfs = VirtualFileSystem()
    dispatcher = ToolDispatcher(vfs, templates={"mini": {"/index.html": {"code": "<p>hi</p>"}}})

    await dispatcher.execute(make_call("init_project", {"template": "mini"}))

    assert vfs.snapshot() == {"index.html": "<p>hi</p>"}


@pytest.mark.asyncio
async def test_manage_dependencies(dispatcher, vfs):
    """Test writing package.json and the dependency event."""
    notified = []
    dispatcher.events.on_dependencies_change = notified.append
    package_json = json.dumps({"dependencies": {"react": "^18.0.0"}})

    outcome = await dispatcher.execute(make_call("manage_dependencies", {"package_json": package_json}))

    assert outcome.result == "OK — created package.json, dependencies updated. The preview will restart."
    assert vfs.snapshot()["package.json"] == package_json
    assert len(notified) == 1


@pytest.mark.asyncio
async def test_manage_dependencies_existing_nested_file():
    """Test that an existing package.json is updated in place."""
    vfs = VirtualFileSystem({"app/package.json": "{}"})
    dispatcher = ToolDispatcher(vfs)

    outcome = await dispatcher.execute(make_call("manage_dependencies", {"package_json": '{"name": "x"}'}))

    assert outcome.changes == [FileChange(path="app/package.json", action="modified")]
    assert vfs.snapshot()["app/package.json"] == '{"name": "x"}'


@pytest.mark.asyncio
async def test_manage_dependencies_invalid(dispatcher, vfs):
    """Test invalid package_json values."""
    outcome = await dispatcher.execute(make_call("manage_dependencies", {"package_json": "{not json"}))
    assert outcome.result == "Error: invalid JSON in package_json"

    outcome = await dispatcher.execute(make_call("manage_dependencies", {"package_json": "[1, 2]"}))
    assert outcome.result == "Error: package_json must be a JSON object"

    outcome = await dispatcher.execute(make_call("manage_dependencies", {"package_json": {"a": 1}}))
    assert outcome.result == "Error: package_json must be a string containing JSON"

    assert "package.json" not in vfs


@pytest.mark.asyncio
async def test_malformed_arguments(dispatcher, results):
    """Test unparseable arguments become an error result."""
    outcome = await dispatcher.execute(make_call("write_file", raw='{"path": "a.js", '))

    assert outcome.result == 'Error: failed to parse arguments for "write_file"'
    assert results == [("write_file", None, outcome.result)]


@pytest.mark.asyncio
async def test_empty_arguments_treated_as_empty_object(dispatcher):
    """Test that an empty argument string is accepted."""
    outcome = await dispatcher.execute(make_call("list_files", raw=""))

    assert outcome.result.startswith("index.html")


@pytest.mark.asyncio
async def test_tool_result_event_fires_once(dispatcher, results):
    """Test on_tool_result fires once with parsed arguments."""
    await dispatcher.execute(make_call("list_files", {}))

    assert len(results) == 1
    assert results[0][:2] == ("list_files", {})


@pytest.mark.asyncio
async def test_unknown_tool_without_handler(dispatcher):
    """Test unknown tools without a custom handler."""
    outcome = await dispatcher.execute(make_call("deploy", {}))

    assert outcome.result == 'Error: unknown tool "deploy"'


@pytest.mark.asyncio
async def test_custom_handler_sync_and_async(vfs):
    """Test sync and async custom handlers and non-string results."""
    def sync_handler(name, args):
        return {"name": name, "args": args}

    outcome = await ToolDispatcher(vfs, custom_tool_handler=sync_handler).execute(make_call("echo", {"a": 1}))
    assert json.loads(outcome.result) == {"name": "echo", "args": {"a": 1}}

    async def async_handler(name, args):
        return f"async {name}"

    outcome = await ToolDispatcher(vfs, custom_tool_handler=async_handler).execute(make_call("ping"))
    assert outcome.result == "async ping"


@pytest.mark.asyncio
async def test_custom_handler_error(vfs):
    """Test custom handler exceptions become error results."""
    def failing(name, args):
        raise RuntimeError("boom")

    outcome = await ToolDispatcher(vfs, custom_tool_handler=failing).execute(make_call("web_search"))

    assert outcome.result == 'Error in custom tool "web_search": boom'


@pytest.mark.asyncio
async def test_custom_handler_unserializable_result(vfs):
    """Test a result that cannot be JSON-encoded becomes an error result."""
    results = []
    dispatcher = ToolDispatcher(
        vfs,
        custom_tool_handler=lambda name, args: object(),
        events=GeneratorEvents(on_tool_result=lambda name, args, result: results.append(result)),
    )

    outcome = await dispatcher.execute(make_call("web_search", {"q": "x"}))

    assert outcome.result.startswith('Error in custom tool "web_search": ')
    assert results == [outcome.result]


@pytest.mark.asyncio
async def test_builtins_take_precedence_over_custom_handler(vfs):
    """Test that built-in names never reach the custom handler."""
    calls = []
    dispatcher = ToolDispatcher(vfs, custom_tool_handler=lambda name, args: calls.append(name) or "x")

    await dispatcher.execute(make_call("list_files"))

    assert calls == []
