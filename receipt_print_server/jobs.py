"""
Print Job Lifecycle
===================

Drives a print job through load -> settle -> print and, after a
successful print, schedules the raw TCP cut.

Jobs run on their own worker thread. Jobs for the same printer are not
serialized by default, so two jobs may interleave their spooler calls to
one device. Set serialize_per_printer to hold a per-printer lock around
the load/print segment instead.
"""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Optional, Tuple, List, Callable, Dict

from .backends import RenderBackend, PrintOptions
from .config import (
    SETTLE_DELAY, CUT_DELAY, SERIALIZE_PER_PRINTER, DEFAULT_PAPER_WIDTH,
    CUT_SPACING_MARKER, CUT_SPACING_MM, PRINTER_RAW_PORT,
)
from .errors import ValidationError, BackendUnavailable, PrintFailure
from .events import EventBus, Notifier, PRINT_JOB_UPDATE
from .job_queue import JobQueue
from .models import PrintJob
from .protocol import CutSender
from .store import ConfigStore

logger = logging.getLogger(__name__)


def fit_to_paper(html: str, paper_width: int) -> str:
    """
    Constrain the body to the paper width and add feed space before the cut.

    Content that already carries the cut-spacing marker is returned as is.
    """
    if CUT_SPACING_MARKER in html:
        return html

    width = f'{paper_width}mm'
    html = html.replace(
        '<body',
        f'<body style="width: {width}; max-width: {width}; margin: 0 auto;"',
        1,
    )
    return html.replace(
        '</body>',
        f'<div class="{CUT_SPACING_MARKER}" style="height: {CUT_SPACING_MM}mm"></div></body>',
        1,
    )


class PrintJobManager:
    """Accepts print jobs, tracks them in the queue and reports changes."""

    def __init__(
            self,
            backend: Optional[RenderBackend],
            store: ConfigStore,
            events: Optional[EventBus] = None,
            cut_sender: Optional[CutSender] = None,
            queue: Optional[JobQueue] = None,
            settle_delay: float = SETTLE_DELAY,
            cut_delay: float = CUT_DELAY,
            serialize_per_printer: bool = SERIALIZE_PER_PRINTER,
            sleep: Callable[[float], None] = time.sleep,
    ):
        self.backend = backend
        self.store = store
        self.events = events or EventBus()
        self.notifier = Notifier(self.events)
        self.cut_sender = cut_sender or CutSender()
        self.queue = queue or JobQueue()
        self.settle_delay = settle_delay
        self.cut_delay = cut_delay
        self.serialize_per_printer = serialize_per_printer
        self._sleep = sleep

        self._printer_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # =========================================================================
    # Submission
    # =========================================================================

    def resolve_paper_width(self, printer_name: str, requested: Optional[int] = None) -> int:
        """Request value, then configured width, then the 80mm default."""
        if requested:
            return int(requested)
        return self.store.paper_width_for(printer_name, DEFAULT_PAPER_WIDTH)

    def submit(self, printer_name: str, content: Optional[str] = None,
               url: Optional[str] = None, paper_width: Optional[int] = None) -> Tuple[PrintJob, Future]:
        """
        Queue a print job and start processing it.

        Args:
            printer_name: Spooler device name
            content: HTML markup (either content or url is required)
            url: Page to print
            paper_width: Paper width override in mm

        Returns:
            The pending job and a Future resolving to the success message.
            The Future raises PrintFailure if the job fails.

        Raises:
            ValidationError: printer_name or content/url missing
            BackendUnavailable: no rendering backend
        """
        if not printer_name:
            raise ValidationError('printerName is required')
        if not content and not url:
            raise ValidationError("Either 'content' or 'url' is required")
        if paper_width is not None:
            try:
                paper_width = int(paper_width)
            except (TypeError, ValueError):
                raise ValidationError('paperWidth must be a number of millimeters')
            if paper_width <= 0:
                raise ValidationError('paperWidth must be a positive number of millimeters')
        if self.backend is None:
            raise BackendUnavailable('No rendering backend available')

        width = self.resolve_paper_width(printer_name, paper_width)
        job = self.queue.create(printer_name, width)
        self._broadcast()

        logger.info("Printing to: %s (Paper: %smm)%s", printer_name, width,
                    ' [Override]' if paper_width else ' [Configured]')

        future: Future = Future()
        future.set_running_or_notify_cancel()
        worker = threading.Thread(
            target=self._run,
            args=(job, content, url, future),
            name=f'print-job-{job.id}',
            daemon=True,
        )
        worker.start()
        return job, future

    def print_job(self, printer_name: str, content: Optional[str] = None,
                  url: Optional[str] = None, paper_width: Optional[int] = None) -> str:
        """Submit and wait for the result. Raises PrintFailure on failure."""
        _, future = self.submit(printer_name, content=content, url=url, paper_width=paper_width)
        return future.result()

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _printer_lock(self, printer_name: str) -> threading.Lock:
        with self._locks_guard:
            return self._printer_locks.setdefault(printer_name, threading.Lock())

    def _run(self, job: PrintJob, content: Optional[str], url: Optional[str], future: Future):
        try:
            if self.serialize_per_printer:
                with self._printer_lock(job.printer_name):
                    result = self._render_and_print(job, content, url)
            else:
                result = self._render_and_print(job, content, url)
        except Exception as e:
            logger.exception("Print job %s raised", job.id)
            self._fail(job, str(e) or e.__class__.__name__, future)
            return

        if not result.success:
            self._fail(job, result.failure_reason or 'Print failed', future)
            return

        self.queue.complete(job)
        self._broadcast()
        logger.info("Print successful: %s (%smm)", job.printer_name, job.paper_width)
        future.set_result(f'Printed on {job.paper_width}mm paper + Cut (RAW TCP)')

        self.schedule_cut(job.printer_name)

    def _render_and_print(self, job: PrintJob, content: Optional[str], url: Optional[str]):
        with self.backend.open_session() as session:
            if url:
                session.load_url(url)
            else:
                session.load_content(fit_to_paper(content, job.paper_width))

            self._sleep(self.settle_delay)

            return session.print(PrintOptions(
                device_name=job.printer_name,
                paper_width=job.paper_width,
                print_background=True,
                margins='none',
                silent=True,
                title=f'Receipt {job.id}',
            ))

    def _fail(self, job: PrintJob, reason: str, future: Future):
        self.queue.fail(job, reason)
        self._broadcast()
        self.notifier.notify(
            'Print Job Failed',
            f'Printer: {job.printer_name}\nPaper: {job.paper_width}mm\nError: {reason}',
            is_error=True,
        )
        future.set_exception(PrintFailure(reason, job_id=job.id))

    # =========================================================================
    # Cut
    # =========================================================================

    def schedule_cut(self, printer_name: str) -> threading.Timer:
        """Send the cut to the printer's IP after the cut delay."""
        printer_ip = self.store.resolve_printer_ip(printer_name)
        timer = threading.Timer(self.cut_delay, self.cut_sender.send_cut,
                                args=(printer_ip, PRINTER_RAW_PORT))
        timer.daemon = True
        timer.start()
        return timer

    # =========================================================================
    # Queue
    # =========================================================================

    def get_recent_jobs(self) -> List[PrintJob]:
        return self.queue.recent()

    def remove_job(self, job_id: int) -> bool:
        """Remove a job from the history. In-flight work is not stopped."""
        removed = self.queue.remove(job_id)
        if removed:
            self._broadcast()
        return removed

    def clear_failed_jobs(self) -> int:
        removed = self.queue.clear_failed()
        self._broadcast()
        return removed

    def _broadcast(self):
        self.events.publish(PRINT_JOB_UPDATE, [j.to_dict() for j in self.queue.recent()])
