"""The ``neovim_workflow`` prompt."""

from __future__ import annotations

from typing import Mapping

from mcp import types as mcp_types

__all__ = ["WORKFLOW_PROMPT", "WORKFLOW_TASKS", "UnknownPromptError", "list_prompts", "get_prompt", "workflow_text"]

WORKFLOW_PROMPT = "neovim_workflow"

WORKFLOW_TASKS: dict[str, str] = {
    "editing": (
        "Here are common editing workflows:\n"
        "1. Use vim_edit with 'insert' mode to add new content\n"
        "2. Use vim_edit with 'replace' mode to modify existing lines\n"
        "3. Use vim_search_replace for find and replace operations\n"
        "4. Use vim_visual to select text ranges before operations"
    ),
    "navigation": (
        "Navigation workflows:\n"
        "1. Use vim_mark to set bookmarks in your code\n"
        "2. Use vim_jump to navigate through your jump history\n"
        "3. Use vim_command with 'normal! gg' or 'normal! G' to go to start/end of file\n"
        "4. Use vim_command with line numbers like ':42' to jump to specific lines"
    ),
    "search": (
        "Search workflows:\n"
        "1. Use vim_search to find patterns in current buffer\n"
        "2. Use vim_grep for project-wide searches\n"
        "3. Use vim_search_replace for complex find/replace operations\n"
        "4. Use regex patterns for advanced matching"
    ),
    "buffers": (
        "Buffer management:\n"
        "1. Use vim_buffer to view buffer contents\n"
        "2. Use vim_buffer_switch to change between buffers\n"
        "3. Use vim_file_open to open new files\n"
        "4. Use vim_buffer_save to save your work"
    ),
    "windows": (
        "Window management:\n"
        "1. Use vim_window with 'split'/'vsplit' to create new windows\n"
        "2. Use vim_window with 'wincmd h/j/k/l' to navigate between windows\n"
        "3. Use vim_window with 'close' to close current window\n"
        "4. Use vim_window with 'only' to keep only current window"
    ),
    "macros": (
        "Macro workflows:\n"
        "1. Use vim_macro with 'record' and a register to start recording\n"
        "2. Perform your actions in Neovim\n"
        "3. Use vim_macro with 'stop' to end recording\n"
        "4. Use vim_macro with 'play' to execute recorded actions"
    ),
}


class UnknownPromptError(KeyError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown prompt: {name}")


def workflow_text(task: str | None) -> str:
    text = WORKFLOW_TASKS.get(task or "")
    if text is None:
        return "Unknown task type. Available tasks: " + ", ".join(WORKFLOW_TASKS)
    return text


def list_prompts() -> list[mcp_types.Prompt]:
    return [
        mcp_types.Prompt(
            name=WORKFLOW_PROMPT,
            description="Get help with common Neovim workflows and editing tasks",
            arguments=[
                mcp_types.PromptArgument(
                    name="task",
                    description="Type of Neovim task you need help with: " + ", ".join(WORKFLOW_TASKS),
                    required=True,
                )
            ],
        )
    ]


def get_prompt(name: str, arguments: Mapping[str, str] | None) -> mcp_types.GetPromptResult:
    if name != WORKFLOW_PROMPT:
        raise UnknownPromptError(name)
    task = (arguments or {}).get("task")
    return mcp_types.GetPromptResult(
        description=f"Neovim workflow help: {task}",
        messages=[
            mcp_types.PromptMessage(
                role="assistant",
                content=mcp_types.TextContent(type="text", text=workflow_text(task)),
            )
        ],
    )
