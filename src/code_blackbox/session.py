"""
Host integration for code-blackbox.

A BlackboxSession sits between an agent host and its tools. It remembers
which agent drives each chat session, which files the agent wrote itself,
and rewrites what a blackbox agent reads:

- read-tool output is reconciled with `redact_output`;
- file attachments are replaced by a data URL of the redacted file;
- replayed "Called the Read tool" message pairs are redacted in place.

Files the agent wrote in the session and allowlisted paths (tests by
default) are never redacted.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pathspec

from .config import BlackboxConfig
from .policy import AgentInfo, matches_any, normalize, parse_allowed, should_blackbox
from .redactor import Redactor
from .utils import data_url, read_file_safe, relative_to_base

logger = logging.getLogger(__name__)

READ_CALL_PREFIX = "Called the Read tool with the following input: "
REDACTION_POLICY = "blackbox"


@dataclass
class ToolOutput:
    """The rewritable part of a tool result."""

    title: str
    output: str
    metadata: dict[str, Any] = field(default_factory=dict)


class BlackboxSession:
    """
    Per-process state of the host integration.

    Agents are registered by name; chat sessions are mapped to the agent
    that drives them. Each session tracks the files its agent wrote.
    """

    def __init__(
        self,
        agents: Iterable[AgentInfo] = (),
        config: BlackboxConfig | None = None,
        base_path: Path | str | None = None,
        redactor: Redactor | None = None,
    ):
        self.config = config or BlackboxConfig()
        self.base_path = Path(base_path) if base_path is not None else Path.cwd()
        self.redactor = redactor or Redactor(config=self.config)
        self.agents: dict[str, AgentInfo] = {agent.name: agent for agent in agents}
        self.session_agents: dict[str, str] = {}
        self.written: dict[str, set[str]] = {}
        self._allow_cache: dict[str, pathspec.PathSpec] = {}
        logger.info("Blackbox session initialized", extra={"agents": sorted(self.agents)})

    def register_agent(self, agent: AgentInfo) -> None:
        self.agents[agent.name] = agent
        self._allow_cache.pop(agent.name, None)

    def agent_for_session(self, session_id: str) -> AgentInfo | None:
        name = self.session_agents.get(session_id)
        if name is None:
            return None
        return self.agents.get(name)

    def allowlist(self, agent: AgentInfo) -> pathspec.PathSpec:
        """Compile (once per agent) the agent's allowlist merged with the configured one."""
        spec = self._allow_cache.get(agent.name)
        if spec is None:
            spec = parse_allowed(
                agent,
                defaults=self.config.default_allow_patterns,
                extra=self.config.allow_patterns,
            )
            self._allow_cache[agent.name] = spec
        return spec

    def is_allowed(self, agent: AgentInfo, file_path: str) -> bool:
        return matches_any(relative_to_base(file_path, self.base_path), self.allowlist(agent))

    def is_written(self, session_id: str, file_path: str) -> bool:
        return normalize(file_path) in self.written.get(session_id, set())

    def resolve(self, file_path: str) -> Path:
        path = Path(file_path)
        return path if path.is_absolute() else self.base_path / path

    def on_chat_message(self, session_id: str, agent_name: str | None) -> None:
        """Remember which agent drives a chat session."""
        if agent_name is None:
            return
        self.session_agents[session_id] = agent_name

    def on_tool_after(
        self,
        tool: str,
        session_id: str,
        title: str,
        output: str,
        metadata: dict[str, Any] | None = None,
    ) -> ToolOutput | None:
        """
        Inspect a finished tool call.

        Records files written by ``write`` and redacts the output of ``read``
        for blackbox agents.

        Returns:
            The rewritten output, or None when the output stays as it is
        """
        metadata = dict(metadata or {})

        if tool == "write":
            file_path = metadata.get("filepath")
            if isinstance(file_path, str):
                self.written.setdefault(session_id, set()).add(normalize(file_path))
            return None

        if tool != "read" or not self.config.handles(title):
            return None

        agent = self.agent_for_session(session_id)
        if agent is None or not should_blackbox(agent):
            return None

        file_path = normalize(title)
        if self.is_written(session_id, file_path):
            logger.debug("Skipping file written in session", extra={"file_path": file_path, "agent": agent.name})
            return None
        if self.is_allowed(agent, file_path):
            logger.debug("Skipping allowlisted file", extra={"file_path": file_path, "agent": agent.name})
            return None

        updated = self.redactor.redact_output(title, output)
        if updated is None:
            return None

        metadata.update(
            {
                "redacted": True,
                "redaction": {
                    "policy": REDACTION_POLICY,
                    "placeholder": self.config.placeholder,
                },
            }
        )
        logger.info("Redacted tool output", extra={"file_path": file_path, "agent": agent.name})
        return ToolOutput(title=title, output=f"{updated}\n\n{self.config.reminder}", metadata=metadata)

    def _blackbox_agent(self, agent_name: str) -> AgentInfo | None:
        agent = self.agents.get(agent_name)
        return agent if should_blackbox(agent) else None

    def redact_attachment(self, agent_name: str, file_path: str, mime: str) -> str | None:
        """
        Redact a file attached to a message.

        Returns:
            A base64 data URL of the redacted file, or None to keep the attachment
        """
        agent = self._blackbox_agent(agent_name)
        if agent is None or not self.config.handles(file_path):
            return None

        relative = relative_to_base(file_path, self.base_path)
        if self.is_allowed(agent, relative):
            return None

        absolute = self.resolve(file_path)
        try:
            original, _ = read_file_safe(absolute)
            redacted = self.redactor.redact_file(absolute, original)
        except (OSError, UnicodeError) as e:
            logger.warning(
                "Failed to redact file attachment",
                extra={"file_path": relative, "agent": agent_name, "error": str(e)},
            )
            return None

        logger.info("Redacted file attachment", extra={"file_path": relative, "agent": agent_name})
        return data_url(mime, redacted)

    def redact_read_call(self, agent_name: str, call_text: str, output_text: str) -> str | None:
        """
        Redact a replayed read: a "Called the Read tool" part and its output part.

        Returns:
            The redacted output text, or None to keep it
        """
        agent = self._blackbox_agent(agent_name)
        if agent is None or not call_text.startswith(READ_CALL_PREFIX):
            return None

        try:
            read_input = json.loads(call_text[len(READ_CALL_PREFIX):])
        except json.JSONDecodeError:
            return None
        if not isinstance(read_input, dict):
            return None

        raw_path = read_input.get("filePath")
        if not isinstance(raw_path, str) or not raw_path or not self.config.handles(raw_path):
            return None

        relative = relative_to_base(raw_path, self.base_path)
        if self.is_allowed(agent, relative) or "<file>" not in output_text:
            return None

        updated = self.redactor.redact_output(self.resolve(raw_path), output_text)
        if updated is None:
            return None

        logger.info("Redacted inline read output", extra={"file_path": relative, "agent": agent_name})
        return f"{updated}\n\n{self.config.reminder}"

    def transform_message(self, agent_name: str, parts: list[dict[str, Any]]) -> bool:
        """
        Redact the parts of one replayed message in place.

        Parts are host dictionaries: ``{"type": "file", "mime", "url",
        "filename", "source"}`` or ``{"type": "text", "text", "metadata"}``.
        The first text part gains the attachment reminder once.

        Returns:
            True if anything was redacted
        """
        if self._blackbox_agent(agent_name) is None:
            return False

        did_redact = False
        for index, part in enumerate(parts):
            if part.get("type") == "file":
                did_redact = self._transform_file_part(agent_name, part) or did_redact
                continue
            if part.get("type") != "text" or index + 1 >= len(parts):
                continue

            following = parts[index + 1]
            if following.get("type") != "text":
                continue
            updated = self.redact_read_call(agent_name, part.get("text", ""), following.get("text", ""))
            if updated is None:
                continue
            following["text"] = updated
            following["metadata"] = {**(following.get("metadata") or {}), "redacted": True}
            did_redact = True

        if not did_redact:
            return False

        text_parts = [part for part in parts if part.get("type") == "text"]
        if text_parts and not any((part.get("metadata") or {}).get("redaction") for part in text_parts):
            first = text_parts[0]
            first["text"] = f"{first.get('text', '')}\n\n{self.config.attachment_reminder}"
            first["metadata"] = {**(first.get("metadata") or {}), "redaction": True}
        return True

    def _transform_file_part(self, agent_name: str, part: dict[str, Any]) -> bool:
        filename = part.get("filename")
        if not filename:
            return False
        source = part.get("source") or {}
        file_path = source.get("path") if source.get("type") == "file" else None
        url = self.redact_attachment(agent_name, file_path or filename, part.get("mime", "text/plain"))
        if url is None:
            return False
        part["url"] = url
        return True
