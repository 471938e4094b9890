#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/rgsweep/replace/engine.py
"""Confirmed, backed-up bulk replacement across the files of a search.

The workflow is:

1. Validate the query, the replacement and the result set.
2. Ask the user to confirm, cancel or preview.
3. Back up every target file (when enabled). If any backup fails the user
   decides whether to go on; declining leaves every file untouched.
4. Rewrite the files one after the other with the platform substitution
   command. A failure is recorded for its file and the next file is processed.
5. Report and search again, so the result list reflects the new content.

Previewing never writes anything.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from rgsweep.exceptions import SpawnError, SubstitutionFailure, ValidationError
from rgsweep.interfaces import Choice, LoggingMessageSink, MessageSink, PreviewSink, Prompt
from rgsweep.options.replace import ReplaceOptions
from rgsweep.options.search import SearchOptions
from rgsweep.progress import ProgressCallback, ProgressEvent, emit_progress
from rgsweep.replace.backup import create_backups
from rgsweep.replace.preview import build_preview
from rgsweep.replace.substitution import build_substitution
from rgsweep.search.controller import SearchController
from rgsweep.search.process import ProcessRunner
from rgsweep.search.session import SearchSession

logger = logging.getLogger(__name__)

BACKUP_QUESTION = "Some files could not be backed up. Continue anyway?"


@dataclass(frozen=True)
class ReplacePlan:
    """Query, replacement and the distinct files to rewrite, in first-seen order."""

    query: str
    replacement: str
    files: tuple[str, ...]

    @property
    def file_count(self) -> int:
        """Number of target files."""
        return len(self.files)


@dataclass
class ReplaceReport:
    """Outcome of one replace request."""

    plan: ReplacePlan
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    backups: list[str] = field(default_factory=list)
    previewed: bool = False
    aborted: bool = False
    preview_lines: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """One-line description of the outcome."""
        text = (
            f"Replaced '{self.plan.query}' with '{self.plan.replacement}' "
            f"in {len(self.succeeded)}/{self.plan.file_count} files"
        )
        if self.failed:
            text += f" ({len(self.failed)} failed)"
        return text


def _location_path(location: Any) -> str:
    if isinstance(location, (str, os.PathLike)):
        return os.fspath(location)
    return location.filepath


def plan_replace(options: SearchOptions, locations: Iterable[Any]) -> ReplacePlan:
    """Validate a replace request and derive its target files.

    Parameters
    ----------
    options : SearchOptions
        Query, replacement and match semantics.
    locations : Iterable
        Result locations, match records or plain paths.

    Raises
    ------
    ValidationError
        If the query or replacement is empty, or there is nothing to replace.

    """
    if not options.query or not options.replace_text:
        raise ValidationError(
            "Search query and replacement text cannot be empty",
            parameter_name="query" if not options.query else "replace_text",
            parameter_value=options.query if not options.query else options.replace_text,
        )
    files = tuple(dict.fromkeys(_location_path(location) for location in locations))
    if not files:
        raise ValidationError("No search results to replace", parameter_name="locations", parameter_value=[])
    return ReplacePlan(options.query, options.replace_text, files)


class ReplaceEngine:
    """Carry out replace requests.

    Parameters
    ----------
    prompt : Prompt
        Asks for confirmation.
    messages : MessageSink, optional
        Receives warnings and the final report. Defaults to logging.
    preview_sink : PreviewSink, optional
        Shows replacement previews.
    options : ReplaceOptions, optional
        Backup and platform settings.
    runner : ProcessRunner, optional
        Runs the substitution commands.
    controller : SearchController, optional
        Used to search again after replacing.
    progress_callback : ProgressCallback, optional
        Receives one event per rewritten file.
    cwd : str, optional
        Directory relative result paths are resolved against. Defaults to the
        controller's directory, then to the process working directory.

    """

    def __init__(
        self,
        prompt: Prompt,
        messages: MessageSink | None = None,
        preview_sink: PreviewSink | None = None,
        options: ReplaceOptions | None = None,
        runner: ProcessRunner | None = None,
        controller: SearchController | None = None,
        progress_callback: ProgressCallback | None = None,
        cwd: str | None = None,
    ):
        """Create an engine."""
        self.prompt = prompt
        self.messages: MessageSink = messages or LoggingMessageSink()
        self.preview_sink = preview_sink
        self.options = options or ReplaceOptions()
        self.runner = runner or ProcessRunner()
        self.controller = controller
        self.progress_callback = progress_callback
        self.cwd = cwd

    def _base_dir(self) -> str:
        if self.cwd:
            return self.cwd
        if self.controller is not None and self.controller.cwd:
            return self.controller.cwd
        return os.getcwd()

    def _resolve(self, path: str) -> str:
        return os.path.join(self._base_dir(), path)

    async def execute_replace(
        self,
        target: SearchSession | SearchOptions,
        locations: Sequence[Any],
    ) -> ReplaceReport:
        """Replace the query in every file of ``locations``.

        Parameters
        ----------
        target : SearchSession or SearchOptions
            Options to replace with. When a session is given, it is searched
            again after the files were rewritten.
        locations : Sequence
            Result locations, match records or plain paths.

        Returns
        -------
        ReplaceReport
            What was backed up, rewritten, previewed or aborted.

        Raises
        ------
        ValidationError
            If the request is incomplete; nothing is attempted.

        """
        session = target if isinstance(target, SearchSession) else None
        options = target.options if isinstance(target, SearchSession) else target
        plan = plan_replace(options, locations)
        report = ReplaceReport(plan)

        question = f"Replace '{plan.query}' with '{plan.replacement}' in {plan.file_count} files?"
        choice = self.prompt.choose(question, [Choice.CONFIRM, Choice.CANCEL, Choice.PREVIEW], default=Choice.CANCEL)
        if choice is Choice.PREVIEW:
            report.preview_lines = self.preview_replace(options, plan.files)
            report.previewed = True
            return report
        if choice is not Choice.CONFIRM:
            logger.info("Replace of %r declined", plan.query)
            report.aborted = True
            return report

        if self.options.backup_files:
            backups, failures = create_backups(
                (self._resolve(path) for path in plan.files), self.options.backup_suffix
            )
            report.backups = backups
            if failures:
                for failure in failures:
                    self.messages.warn(failure.message)
                answer = self.prompt.choose(BACKUP_QUESTION, [Choice.CONFIRM, Choice.CANCEL], default=Choice.CANCEL)
                if answer is not Choice.CONFIRM:
                    self.messages.warn("Replace aborted, no files were changed")
                    report.aborted = True
                    return report

        await self._rewrite_files(options, plan, report)
        self.messages.info(report.summary)
        emit_progress(
            self.progress_callback,
            ProgressEvent(
                "finished",
                report.summary,
                current=len(report.succeeded),
                total=plan.file_count,
                metadata={"failed": dict(report.failed)},
            ),
        )

        if session is not None and self.controller is not None:
            self.controller.cancel(session)
            await self.controller.start_search(session)
        return report

    async def _rewrite_files(self, options: SearchOptions, plan: ReplacePlan, report: ReplaceReport) -> None:
        emit_progress(
            self.progress_callback,
            ProgressEvent("started", f"Replacing in {plan.file_count} files", total=plan.file_count),
        )
        for index, path in enumerate(plan.files, start=1):
            try:
                await self.substitute(options, path)
            except SubstitutionFailure as failure:
                self.messages.warn(failure.message)
                report.failed[path] = failure.message
                emit_progress(
                    self.progress_callback,
                    ProgressEvent(
                        "error",
                        failure.message,
                        current=index,
                        total=plan.file_count,
                        metadata={"error": failure.message, "file": path},
                    ),
                )
                continue
            report.succeeded.append(path)
            emit_progress(
                self.progress_callback,
                ProgressEvent(
                    "item_done",
                    f"Replaced in {path}",
                    current=index,
                    total=plan.file_count,
                    metadata={"item_type": "file", "file": path},
                ),
            )

    async def substitute(self, options: SearchOptions, path: str) -> None:
        """Rewrite one file in place.

        Raises
        ------
        SubstitutionFailure
            If the command cannot be started or exits non-zero.

        """
        command = build_substitution(options, self._resolve(path), self.options.platform)
        logger.debug("Running %s", command.argv())
        try:
            result = await self.runner.run(command.command, command.args, cwd=self._base_dir())
        except SpawnError as exc:
            raise SubstitutionFailure(path, original_error=exc) from exc
        if result.returncode != 0:
            raise SubstitutionFailure(path, exit_code=result.returncode, output=result.output_text())

    def preview_replace(self, options: SearchOptions, files: Iterable[str]) -> list[str]:
        """Show what replacing would change, without writing anything.

        Returns
        -------
        list[str]
            The preview lines, also sent to the preview sink.

        """
        lines = build_preview(options, files, cwd=self._base_dir(), warn=self.messages.warn)
        if self.preview_sink is not None:
            self.preview_sink.show_diff(lines)
        return lines
