"""
ReplayGuard Harness Controller

Runs one regression test case end to end:

    IDLE -> CONFIG_OPENED -> TRANSPORT_BUILT -> PLAN_RECORDED -> PLAN_VERIFIED
         -> PLAN_EXECUTED -> RESULT_VERIFIED -> CLOSED

Any failure moves the case to ERRORED; CLOSED is always reached and every
resource opened so far (config context, mock transport, recorder session) is
released in reverse order of acquisition.

The same pipeline either verifies artifacts against stored templates or
writes new templates (baseline generation).
"""

import logging
import shutil
import tempfile
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from .interfaces import PlanRunner, Recorder
from .locator import RegressionTestCase, find_test_cases
from .settings import HarnessSettings
from ..common.recording_log import RecordingLog
from ..config.properties import PropertySet
from ..config.scoped import ScopedConfigContext
from ..mock.server import MockConfig
from ..mock.transport import from_log
from ..template.engine import assert_file_matches, convert_file_to_template
from ..template.rules import ArtifactKind


logger = logging.getLogger("replayguard.harness")


class HarnessState(Enum):
    IDLE = 'idle'
    CONFIG_OPENED = 'config-opened'
    TRANSPORT_BUILT = 'transport-built'
    PLAN_RECORDED = 'plan-recorded'
    PLAN_VERIFIED = 'plan-verified'
    PLAN_EXECUTED = 'plan-executed'
    RESULT_VERIFIED = 'result-verified'
    ERRORED = 'errored'
    CLOSED = 'closed'


@dataclass
class CaseOutcome:
    """States a test case went through and the error that stopped it, if any."""

    test_case: RegressionTestCase
    mode: str  # verify, generate
    states: List[HarnessState] = field(default_factory=lambda: [HarnessState.IDLE])
    error: Optional[BaseException] = None

    @property
    def state(self) -> HarnessState:
        return self.states[-1]

    @property
    def passed(self) -> bool:
        return self.error is None and HarnessState.RESULT_VERIFIED in self.states

    @property
    def failed_after(self) -> Optional[HarnessState]:
        """Last state reached before the error."""
        if HarnessState.ERRORED not in self.states:
            return None
        return self.states[self.states.index(HarnessState.ERRORED) - 1]

    def advance(self, state: HarnessState):
        logger.debug(f"[{self.test_case.name}] {self.state.value} -> {state.value}")
        self.states.append(state)

    def fail(self, error: BaseException):
        self.error = error
        self.advance(HarnessState.ERRORED)


@dataclass
class BaselineReport:
    """Outcome of a baseline generation run over several test cases."""

    baseline_root: Path
    outcomes: List[CaseOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[CaseOutcome]:
        return [o for o in self.outcomes if o.passed]

    @property
    def failed(self) -> List[CaseOutcome]:
        return [o for o in self.outcomes if not o.passed]


class RegressionHarness:
    """
    Record/replay regression harness.

    Example:
        harness = RegressionHarness(settings, RecordingProxy(), PlanRunner())
        for case in harness.find_test_cases():
            harness.verify(case)

        report = harness.generate_baselines()
    """

    def __init__(
        self,
        settings: HarnessSettings,
        recorder: Recorder,
        runner: PlanRunner,
        transport_factory: Optional[Callable] = None,
        properties: Optional[PropertySet] = None
    ):
        """
        Initialize harness.

        Args:
            settings: Harness settings
            recorder: Recorder-under-test
            runner: Run engine executing recorded plans
            transport_factory: Builds (server, client) from a RecordingLog,
                defaults to mock.from_log
            properties: Base properties (defaults to settings.properties)
        """
        self.settings = settings
        self.recorder = recorder
        self.runner = runner
        self.transport_factory = transport_factory or from_log
        self.properties = properties if properties is not None else settings.create_properties()
        self.last_outcome: Optional[CaseOutcome] = None

    def find_test_cases(self, search_root: Optional[Union[str, Path]] = None) -> List[RegressionTestCase]:
        """Test cases under ``search_root`` (default: the regression root)."""
        return find_test_cases(
            search_root or self.settings.regression_root,
            regression_root=self.settings.regression_root,
            recording_log_name=self.settings.recording_log_name
        )

    def _run_case(
        self,
        test_case: RegressionTestCase,
        mode: str,
        work_dir: Path,
        on_plan: Callable[[Path], None],
        on_result_log: Callable[[Path], None]
    ) -> CaseOutcome:
        settings = self.settings
        outcome = CaseOutcome(test_case, mode)
        self.last_outcome = outcome

        plan_path = work_dir / settings.plan_name
        result_log_path = work_dir / settings.result_log_name

        try:
            with ExitStack() as stack:
                try:
                    stack.enter_context(ScopedConfigContext(
                        self.properties, test_case.directory, settings.regression_root, settings.overrides_name
                    ))
                    outcome.advance(HarnessState.CONFIG_OPENED)

                    recording_log = RecordingLog.load(test_case.directory / settings.recording_log_name)
                    server, client = self.transport_factory(
                        recording_log,
                        MockConfig(host=settings.mock_host, port=settings.mock_port),
                        settings.client_timeout
                    )
                    stack.callback(client.close)
                    stack.enter_context(server)
                    session = stack.enter_context(self.recorder.open_session(self.properties, server.base_url))
                    outcome.advance(HarnessState.TRANSPORT_BUILT)

                    client.run(session.endpoint)
                    server.verify()
                    session.save_plan(plan_path)
                    outcome.advance(HarnessState.PLAN_RECORDED)

                    server.reset()
                    on_plan(plan_path)
                    outcome.advance(HarnessState.PLAN_VERIFIED)

                    self.runner.run(plan_path, result_log_path, self.properties)
                    server.verify()
                    outcome.advance(HarnessState.PLAN_EXECUTED)

                    on_result_log(result_log_path)
                    outcome.advance(HarnessState.RESULT_VERIFIED)
                except Exception as e:
                    outcome.fail(e)
                    raise
        finally:
            outcome.advance(HarnessState.CLOSED)

        return outcome

    def verify(self, test_case: RegressionTestCase) -> CaseOutcome:
        """
        Verify a test case against its stored templates.

        Raises:
            StructuralError, TemplateMismatchError, TransportError: After
                all resources have been released
        """
        plan_template = test_case.directory / self.settings.plan_template_name
        result_log_template = test_case.directory / self.settings.result_log_template_name

        with tempfile.TemporaryDirectory(prefix='replayguard-') as work_dir:
            outcome = self._run_case(
                test_case,
                'verify',
                Path(work_dir),
                lambda plan: assert_file_matches(plan, plan_template, ArtifactKind.PLAN),
                lambda log: assert_file_matches(log, result_log_template, ArtifactKind.RESULT_LOG)
            )

        logger.info(f"Verified '{test_case.name}'")
        return outcome

    def generate(self, test_case: RegressionTestCase, baseline_root: Union[str, Path]) -> CaseOutcome:
        """
        Generate the baseline of a test case under ``baseline_root``.

        Templates are built in a staging directory. The baseline directory
        only receives files once the whole case succeeded, so a failing case
        leaves nothing behind.
        """
        settings = self.settings
        baseline_dir = Path(baseline_root) / test_case.relative_path
        logger.info(f"Creating baseline for '{test_case.name}'")

        with tempfile.TemporaryDirectory(prefix='replayguard-baseline-') as staging:
            staging = Path(staging)
            plan_template = staging / settings.plan_template_name
            result_log_template = staging / settings.result_log_template_name

            outcome = self._run_case(
                test_case,
                'generate',
                staging,
                lambda plan: convert_file_to_template(plan, plan_template, ArtifactKind.PLAN.rules),
                lambda log: convert_file_to_template(log, result_log_template, ArtifactKind.RESULT_LOG.rules)
            )

            baseline_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(test_case.directory / settings.recording_log_name, baseline_dir / settings.recording_log_name)
            shutil.copyfile(plan_template, baseline_dir / settings.plan_template_name)
            shutil.copyfile(result_log_template, baseline_dir / settings.result_log_template_name)

        return outcome

    def generate_baselines(
        self,
        baseline_root: Optional[Union[str, Path]] = None,
        search_root: Optional[Union[str, Path]] = None
    ) -> BaselineReport:
        """
        Generate baselines for every test case under ``search_root``.

        A failing test case is logged with its name and does not stop the
        remaining ones.
        """
        report = BaselineReport(Path(baseline_root or self.settings.baseline_root))

        for test_case in self.find_test_cases(search_root):
            self.last_outcome = None
            try:
                outcome = self.generate(test_case, report.baseline_root)
            except Exception as e:
                logger.error(f"Problem generating baseline for '{test_case.name}'", exc_info=True)
                outcome = self.last_outcome or CaseOutcome(test_case, 'generate')
                if outcome.error is None:
                    outcome.error = e
            report.outcomes.append(outcome)

        logger.info(
            f"Generated {len(report.succeeded)} baseline(s) in {report.baseline_root}, "
            f"{len(report.failed)} failed"
        )
        return report
