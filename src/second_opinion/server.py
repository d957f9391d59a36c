"""MCP stdio server exposing the ``consult`` tool.

Expected failures (bad files, bad diff input, backend errors) come back as
error tool results carrying a readable message, never as protocol faults.
"""

import logging
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import BaseModel, Field

from second_opinion.config import Config
from second_opinion.consult import TOOL_NAME, describe_failure, run_consultation
from second_opinion.errors import SecondOpinionError
from second_opinion.models import DEFAULT_BASE_REF, ConsultRequest, DiffSpec
from second_opinion.transcript import log_failure

log = logging.getLogger(__name__)

SERVER_NAME = "second-opinion"
SERVER_INSTRUCTIONS = "Second Opinion MCP server - consult a different AI coding assistant."

CONSULT_DESCRIPTION = """\
Ask a second, different AI for help with the problem at hand. It might have an original idea or \
approach that you did not think about so far. Provide your question in the prompt field and \
always include relevant code files as context.

Be specific about what you want: architecture advice, code implementation, document review, bug \
research, or anything else.

IMPORTANT: Ask neutral, open-ended questions. Avoid suggesting specific solutions or alternatives \
in your prompt as this can bias the analysis. Instead of "Should I use X or Y approach?", ask \
"What's the best approach for this problem?" Let the consultant LLM provide unbiased \
recommendations."""


class GitDiffArgs(BaseModel):
    """Git diff parameters."""

    repo_path: str | None = Field(
        default=None,
        description="Path to git repository (defaults to current working directory)",
    )
    files: list[str] = Field(description="Specific files to include in diff")
    base_ref: str = Field(
        default=DEFAULT_BASE_REF,
        description='Git reference to compare against (e.g., "HEAD", "main", commit hash)',
    )

    def to_diff_spec(self) -> DiffSpec:
        return DiffSpec(files=tuple(self.files), repo_path=self.repo_path, base_ref=self.base_ref)


class SecondOpinionServer:
    """Tool handlers bound to one config snapshot."""

    def __init__(self, config: Config) -> None:
        self.config = config

    async def consult(
        self,
        prompt: str,
        model: str | None = None,
        files: list[str] | None = None,
        git_diff: GitDiffArgs | dict | None = None,
    ) -> str:
        if isinstance(git_diff, dict):
            git_diff = GitDiffArgs.model_validate(git_diff)
        request = ConsultRequest(
            prompt=prompt,
            model=model,
            files=tuple(files) if files is not None else None,
            git_diff=git_diff.to_diff_spec() if git_diff is not None else None,
        )
        try:
            return await run_consultation(request, self.config)
        except SecondOpinionError as exc:
            message = describe_failure(exc)
            log_failure(model, f"[{exc.code}] {message}")
            raise ToolError(message) from exc
        except Exception as exc:
            log.exception("Unexpected error in consult")
            raise ToolError(f"Unexpected error: {exc}") from exc


def build_server(config: Config) -> FastMCP:
    """Create the FastMCP server with the ``consult`` tool registered."""
    handler = SecondOpinionServer(config)
    server = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS)
    aliases = ", ".join(f'"{a}"' for a in config.enabled_aliases())

    @server.tool(name=TOOL_NAME, description=CONSULT_DESCRIPTION)
    async def consult(
        prompt: Annotated[
            str,
            Field(
                description="Your question or request for the consultant LLM. Ask neutral, "
                "open-ended questions without suggesting specific solutions to avoid biasing "
                "the analysis."
            ),
        ],
        model: Annotated[
            str | None,
            Field(
                description=f"LLM model to use. One of {aliases}. "
                f'Defaults to "{config.default_alias}".'
            ),
        ] = None,
        files: Annotated[
            list[str] | None,
            Field(description="Array of file paths to include as context."),
        ] = None,
        git_diff: Annotated[
            GitDiffArgs | None,
            Field(description="Generate git diff output to include as context."),
        ] = None,
    ) -> str:
        return await handler.consult(prompt, model=model, files=files, git_diff=git_diff)

    return server


def serve(config: Config) -> None:
    """Run the MCP server over stdio until the client disconnects."""
    build_server(config).run(transport="stdio")
