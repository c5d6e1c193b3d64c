"""Release orchestration: squash, cherry-pick, tag and push.

The flow is a small state machine over ``ReleaseStep``:

    START -> SQUASHING -> CHERRY_PICKING -> CONFLICT | FINALIZING -> DONE
    START -> RESUMING -> CONFLICT | FINALIZING -> DONE        (--continue)

CONFLICT ends the invocation with an error but keeps the transient branches
so the operator can resolve and re-run with ``--continue``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from deliver.core.config import ReleaseConfig
from deliver.core.result import Err, Ok, Result
from deliver.git.repository import GitError, Repository
from deliver.output.console import ConsoleProtocol, Style
from deliver.release.errors import ReleaseError
from deliver.release.fsm import FINISH, StepHandler, StepOutcome, advance, run_state_machine
from deliver.release.model import (
    CherryPickOutcome,
    ReleaseRequest,
    ReleaseSession,
    ReleaseStep,
    RunMode,
)
from deliver.release.preflight import check_fresh_run, check_resume_run, ensure_tags_free

__all__ = ["ReleaseFlow", "run_release"]

StepResult = Result[StepOutcome[ReleaseSession], ReleaseError]
GitStep = tuple[str, Callable[[], Result[object, GitError]]]


def _git_failed(description: str, error: GitError) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=f"{description} failed", hint=error.message)


@dataclass(frozen=True, slots=True)
class ReleaseFlow:
    repo: Repository
    config: ReleaseConfig
    request: ReleaseRequest
    console: ConsoleProtocol

    @property
    def dev_tag(self) -> str:
        return f"{self.request.tag}{self.config.dev_tag_suffix}"

    def handlers(self) -> dict[ReleaseStep, StepHandler[ReleaseSession]]:
        return {
            ReleaseStep.START: self.start,
            ReleaseStep.SQUASHING: self.squash,
            ReleaseStep.CHERRY_PICKING: self.cherry_pick,
            ReleaseStep.RESUMING: self.resume,
            ReleaseStep.CONFLICT: self.conflict,
            ReleaseStep.FINALIZING: self.finalize,
            ReleaseStep.DONE: lambda _: Ok(FINISH),
        }

    def start(self, session: ReleaseSession) -> StepResult:
        if self.request.mode is RunMode.RESUME:
            checked = check_resume_run(repo=self.repo, config=self.config)
            if isinstance(checked, Err):
                return checked
            tags = ensure_tags_free(self.repo, self.config, self.request.tag)
            if isinstance(tags, Err):
                return tags
            return Ok(advance(replace(session, step=ReleaseStep.RESUMING)))

        ignore_list = check_fresh_run(repo=self.repo, config=self.config, request=self.request)
        if isinstance(ignore_list, Err):
            return ignore_list
        return Ok(
            advance(
                replace(session, step=ReleaseStep.SQUASHING, ignore_list=ignore_list.value)
            )
        )

    def squash(self, session: ReleaseSession) -> StepResult:
        c = self.config
        repo = self.repo
        start = self.request.start_commit

        self.console.header(f"Squashing {start}..{c.development_branch}")
        steps: list[GitStep] = [
            (f"fetch {c.remote}", lambda: repo.fetch(c.remote)),
            (
                f"creating {c.copy_branch}",
                lambda: repo.create_branch(c.copy_branch, c.development_branch),
            ),
            (
                f"creating {c.mirror_branch}",
                lambda: repo.create_branch(c.mirror_branch, f"{c.remote}/{c.delivery_branch}"),
            ),
            (f"checkout {c.copy_branch}", lambda: repo.checkout(c.copy_branch)),
        ]
        if session.ignore_list:
            steps.append(
                (
                    "removing ignored files",
                    lambda: repo.remove_paths(session.ignore_list, recursive=True),
                )
            )
        steps.extend(
            [
                (f"reset to {start}~1", lambda: repo.reset_soft(f"{start}~1")),
                (
                    "release commit",
                    lambda: repo.commit(self.request.message, sign=c.sign),
                ),
            ]
        )

        failed = self._run_steps(steps)
        if failed is not None:
            return Err(failed)

        for path in session.ignore_list:
            self.console.print(f"stripped {path}", Style.DIM)
        return Ok(advance(replace(session, step=ReleaseStep.CHERRY_PICKING)))

    def cherry_pick(self, session: ReleaseSession) -> StepResult:
        c = self.config
        if self.repo.cherry_pick_in_progress():
            return Err(
                ReleaseError(
                    kind="cherry_pick_in_progress",
                    message="there is already a cherry-pick in progress",
                )
            )

        checked_out = self.repo.checkout(c.mirror_branch)
        if isinstance(checked_out, Err):
            return Err(_git_failed(f"checkout {c.mirror_branch}", checked_out.error))

        self.console.header(f"Cherry-picking release commit onto {c.mirror_branch}")
        outcome = _outcome(self.repo.cherry_pick(c.copy_branch))
        return Ok(advance(_after_pick(session, outcome)))

    def resume(self, session: ReleaseSession) -> StepResult:
        self.console.header("Resuming cherry-pick")
        removed = self.repo.remove_paths(self.config.managed_paths, force=True)
        if isinstance(removed, Err):
            return Err(_git_failed("removing release files", removed.error))

        outcome = _outcome(self.repo.cherry_pick_continue())
        return Ok(advance(_after_pick(session, outcome)))

    def conflict(self, session: ReleaseSession) -> StepResult:
        c = self.config
        restorable = [p for p in c.managed_paths if self.repo.path_exists_at(c.copy_branch, p)]
        if restorable:
            restored = self.repo.checkout_paths(c.copy_branch, restorable)
            if isinstance(restored, Err):
                self.console.warning(
                    f"could not restore {', '.join(restorable)} from {c.copy_branch}: "
                    f"{restored.error.message}"
                )

        output = session.outcome.output if session.outcome is not None else ""
        return Err(
            ReleaseError(
                kind="conflict",
                message="couldn't cherry-pick release commit onto the delivery branch",
                hint=output or None,
            )
        )

    def finalize(self, session: ReleaseSession) -> StepResult:
        c = self.config
        repo = self.repo
        tag = self.request.tag
        push = self.request.push

        self.console.header(f"Finalizing {tag}")
        steps: list[GitStep] = [
            ("removing release files", lambda: repo.remove_paths(c.managed_paths)),
            ("amending release commit", lambda: repo.commit(None, sign=c.sign, amend=True)),
            (
                f"tag {self.dev_tag}",
                lambda: repo.tag(self.dev_tag, c.development_branch, sign=c.sign),
            ),
            (f"tag {tag}", lambda: repo.tag(tag, "HEAD", sign=c.sign)),
        ]
        if push:
            refspecs = [
                f"HEAD:{c.delivery_branch}",
                f"refs/tags/{tag}",
                f"refs/tags/{self.dev_tag}",
            ]
            steps.append((f"push to {c.remote}", lambda: repo.push(c.remote, refspecs)))

        leftovers: Sequence[str] = c.transient_branches if push else (c.copy_branch,)
        steps.extend(
            [
                (f"checkout {c.development_branch}", lambda: repo.checkout(c.development_branch)),
                ("deleting transient branches", lambda: repo.delete_branches(leftovers)),
            ]
        )

        failed = self._run_steps(steps)
        if failed is not None:
            return Err(failed)

        if push:
            self.console.success(f"released {tag} to {c.remote}/{c.delivery_branch}")
        else:
            self.console.success(f"released {tag} locally on {c.mirror_branch} (not pushed)")
        return Ok(advance(replace(session, step=ReleaseStep.DONE)))

    def _run_steps(self, steps: Sequence[GitStep]) -> ReleaseError | None:
        for description, action in steps:
            result = action()
            if isinstance(result, Err):
                return _git_failed(description, result.error)
        return None


def _outcome(result: Result[str, GitError]) -> CherryPickOutcome:
    match result:
        case Ok(output):
            return CherryPickOutcome(output=output, returncode=0)
        case Err(e):
            return CherryPickOutcome(output=e.message, returncode=e.returncode or 1)


def _after_pick(session: ReleaseSession, outcome: CherryPickOutcome) -> ReleaseSession:
    step = ReleaseStep.FINALIZING if outcome.succeeded else ReleaseStep.CONFLICT
    return replace(session, step=step, outcome=outcome)


def run_release(
    *,
    repo: Repository,
    config: ReleaseConfig,
    request: ReleaseRequest,
    console: ConsoleProtocol,
    verbose: bool = False,
) -> Result[None, ReleaseError]:
    """Run one release invocation (fresh or resumed) to completion or failure."""
    flow = ReleaseFlow(repo=repo, config=config, request=request, console=console)

    def on_advance(session: ReleaseSession) -> None:
        if verbose:
            console.print(f"step: {session.step}", Style.DIM)

    return run_state_machine(
        initial_state=ReleaseSession(step=ReleaseStep.START),
        get_step=lambda s: s.step,
        handlers=flow.handlers(),
        on_advance=on_advance,
    )
