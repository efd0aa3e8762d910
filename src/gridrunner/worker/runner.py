"""Fixed pool of workers running scenarios in parallel."""
import asyncio
import logging
from typing import Iterable, List, Optional
from gridrunner.core.enums import ScenarioStatus
from gridrunner.harness import Harness
from gridrunner.reporting.summary import RunSummary, render_summary
from gridrunner.worker.models import ExecutionResult, ScenarioJob

logger = logging.getLogger(__name__)


class ParallelRunner:
    """
    Runs scenario jobs across a fixed number of workers.

    Each worker takes jobs from a shared queue and runs them one at a time
    through the orchestrator's before/after hooks. Blocking browser and
    network calls run in threads so workers progress independently.
    """

    def __init__(
        self,
        harness: Harness,
        thread_count: Optional[int] = None,
        scenario_deadline: Optional[float] = None,
    ):
        """
        Initialize parallel runner.

        Args:
            harness: Harness owning sessions, sink and context
            thread_count: Number of workers (defaults to THREAD_COUNT)
            scenario_deadline: Seconds allowed for a scenario's steps
                (defaults to SCENARIO_DEADLINE; None means unbounded)
        """
        self.harness = harness
        self.thread_count = max(1, thread_count or harness.settings.THREAD_COUNT)
        self.scenario_deadline = (
            scenario_deadline
            if scenario_deadline is not None
            else harness.settings.SCENARIO_DEADLINE
        )

    def run_sync(self, jobs: Iterable[ScenarioJob]) -> List[ExecutionResult]:
        """Run jobs from synchronous code."""
        return asyncio.run(self.run(jobs))

    async def run(self, jobs: Iterable[ScenarioJob]) -> List[ExecutionResult]:
        """
        Run all jobs and wait for every worker to drain the queue.

        Args:
            jobs: Scenario jobs

        Returns:
            List[ExecutionResult]: One result per job, in completion order
        """
        queue: asyncio.Queue = asyncio.Queue()
        for job in jobs:
            queue.put_nowait(job)

        results: List[ExecutionResult] = []
        worker_count = min(self.thread_count, max(1, queue.qsize()))
        logger.info(f"Running {queue.qsize()} scenarios on {worker_count} workers")

        workers = [
            asyncio.create_task(self._worker_loop(f"worker-{index}", queue, results))
            for index in range(1, worker_count + 1)
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            for task in workers:
                task.cancel()
            await asyncio.to_thread(self.harness.shutdown)

        summary = self.summarize(results)
        logger.info(render_summary(summary, self.harness.settings))
        return results

    @staticmethod
    def summarize(results: Iterable[ExecutionResult]) -> RunSummary:
        """Count results by status."""
        return RunSummary.from_statuses(result.status for result in results)

    async def _worker_loop(
        self, worker_id: str, queue: asyncio.Queue, results: List[ExecutionResult]
    ) -> None:
        """
        Take jobs until the queue is empty.

        Args:
            worker_id: Worker identifier
            queue: Shared job queue
            results: Shared result list
        """
        logger.info(f"Worker {worker_id} starting...")
        while True:
            try:
                job = queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            try:
                results.append(await self._execute(worker_id, job))
            finally:
                queue.task_done()
        logger.info(f"Worker {worker_id} stopped")

    async def _execute(self, worker_id: str, job: ScenarioJob) -> ExecutionResult:
        """
        Run one scenario with setup and teardown.

        Teardown runs whatever happens to the steps: a step error or an
        exceeded deadline marks the scenario failed, and cancellation tears
        the worker down before propagating.

        Args:
            worker_id: Worker identifier
            job: Scenario job

        Returns:
            ExecutionResult: Result of the scenario
        """
        orchestrator = self.harness.orchestrator
        scenario = job.scenario
        await asyncio.to_thread(orchestrator.before, worker_id, scenario)

        if job.skip_reason is not None:
            outcome = await asyncio.to_thread(orchestrator.after_skipped, worker_id, scenario)
            return ExecutionResult(
                worker_id=worker_id,
                scenario=scenario,
                status=ScenarioStatus.SKIPPED,
                outcome=outcome,
                error_message=job.skip_reason,
            )

        error_message = None
        try:
            await self._run_steps(worker_id, job)
        except asyncio.TimeoutError:
            scenario = scenario.mark_failed()
            error_message = f"Scenario timed out after {self.scenario_deadline} seconds"
            logger.error(f"{scenario.name}: {error_message}")
        except asyncio.CancelledError:
            logger.warning(f"Worker {worker_id} cancelled during '{scenario.name}', tearing down")
            await asyncio.shield(
                asyncio.to_thread(orchestrator.after, worker_id, scenario.mark_failed())
            )
            raise
        except Exception as e:
            scenario = scenario.mark_failed()
            error_message = str(e)
            logger.error(f"Scenario '{scenario.name}' failed: {e}", exc_info=True)

        outcome = await asyncio.to_thread(orchestrator.after, worker_id, scenario)
        if outcome is not None:
            status = outcome.status
        else:
            status = ScenarioStatus.FAILED if scenario.is_failed else ScenarioStatus.PASSED

        return ExecutionResult(
            worker_id=worker_id,
            scenario=scenario,
            status=status,
            outcome=outcome,
            error_message=error_message,
        )

    async def _run_steps(self, worker_id: str, job: ScenarioJob) -> None:
        """
        Run the job's steps in a thread, bounded by the scenario deadline.

        On timeout the thread is abandoned. Teardown ends the scope's lease,
        so any further call the thread makes through its scope raises
        SessionExpiredError instead of reaching the next scenario's session.
        """
        call = asyncio.to_thread(job.steps, self.harness.scope(worker_id))
        if self.scenario_deadline is None:
            await call
        else:
            await asyncio.wait_for(call, timeout=self.scenario_deadline)
