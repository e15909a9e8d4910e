"""Built-in tool definitions offered to the model."""

from typing import Iterable, Optional

from webgen.messages import FunctionDefinition, ToolDefinition


def _tool(name: str, description: str, properties: dict, required: Optional[list[str]] = None) -> ToolDefinition:
    parameters: dict = {"type": "object", "properties": properties}
    if required:
        parameters["required"] = required
    return ToolDefinition(
        function=FunctionDefinition(name=name, description=description, parameters=parameters)
    )


def builtin_tools(template_names: Iterable[str]) -> list[ToolDefinition]:
    """Get the built-in tool definitions.

    Args:
        template_names: Template names accepted by init_project

    Returns:
        List of tool definitions in OpenAI format
    """
    names = ", ".join(template_names) or "(none)"

    return [
        _tool(
            "init_project",
            "Initialize the project from a template. Call this FIRST when starting a new project. "
            "It replaces every existing file. "
            f"Available templates: {names}.",
            {
                "template": {
                    "type": "string",
                    "description": "Template name from the available list",
                }
            },
            ["template"],
        ),
        _tool(
            "manage_dependencies",
            "Add, remove, or update project dependencies by modifying package.json. "
            "This triggers a full project restart to install the new dependencies. "
            "Provide the complete updated package.json content.",
            {
                "package_json": {
                    "type": "string",
                    "description": "The complete package.json content to write",
                }
            },
            ["package_json"],
        ),
        _tool(
            "list_files",
            "List all file paths currently in the project. Returns one path per line.",
            {},
        ),
        _tool(
            "read_files",
            "Read and return the full content of one or more files at once.",
            {
                "paths": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "List of file paths relative to project root",
                }
            },
            ["paths"],
        ),
        _tool(
            "write_file",
            "Create a new file or completely overwrite an existing file with the provided content.",
            {
                "path": {
                    "type": "string",
                    "description": "File path relative to project root",
                },
                "content": {
                    "type": "string",
                    "description": "The complete file content to write",
                },
            },
            ["path", "content"],
        ),
        _tool(
            "patch_file",
            "Apply one or more search-and-replace patches to an existing file. "
            "Each patch replaces the FIRST occurrence of the search string. "
            "Include enough surrounding context in 'search' to ensure uniqueness.",
            {
                "path": {
                    "type": "string",
                    "description": "File path to patch",
                },
                "patches": {
                    "type": "array",
                    "description": "Ordered list of search-and-replace operations",
                    "items": {
                        "type": "object",
                        "properties": {
                            "search": {
                                "type": "string",
                                "description": "Exact text to find (must be unique in the file)",
                            },
                            "replace": {
                                "type": "string",
                                "description": "Text to replace the match with",
                            },
                        },
                        "required": ["search", "replace"],
                    },
                },
            },
            ["path", "patches"],
        ),
        _tool(
            "search_in_files",
            "Search for a regex pattern across all project files, line by line.",
            {"pattern": {"type": "string", "description": "Regex pattern"}},
            ["pattern"],
        ),
        _tool(
            "delete_file",
            "Delete a file from the project.",
            {"path": {"type": "string", "description": "File path to delete"}},
            ["path"],
        ),
        _tool(
            "get_console_logs",
            "Get the console output from the running preview. "
            "Use this after finishing code changes to check for runtime errors, warnings, or syntax errors. "
            "If errors are found, fix them immediately.",
            {},
        ),
    ]
