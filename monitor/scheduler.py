"""Background scheduler for retention cleanup and periodic system sampling."""
import logging
import threading
import schedule

logger = logging.getLogger("perfmon.scheduler")


class MonitorScheduler:
    def __init__(self, monitor, cleanup_interval=3600, sample_interval=None, tick=1.0):
        self.monitor = monitor
        self.cleanup_interval = cleanup_interval
        self.sample_interval = sample_interval
        self.tick = tick
        self._scheduler = schedule.Scheduler()
        self._thread = None
        self._stop = threading.Event()
        self._running = False
        self._consecutive_failures = 0

    @property
    def running(self):
        return self._running

    def start(self):
        """Start background jobs."""
        if self._running:
            return
        self._running = True
        self._stop.clear()

        if self.cleanup_interval:
            self._scheduler.every(self.cleanup_interval).seconds.do(self._cleanup_job)
        if self.sample_interval:
            self._scheduler.every(self.sample_interval).seconds.do(self._sample_job)

        self._thread = threading.Thread(target=self._run_loop, name="perfmon-scheduler", daemon=True)
        self._thread.start()
        logger.info(
            f"Scheduler started (cleanup every {self.cleanup_interval}s"
            + (f", sampling every {self.sample_interval}s)" if self.sample_interval else ")")
        )

    def stop(self):
        """Stop background jobs. Safe to call repeatedly."""
        if not self._running:
            return
        self._running = False
        self._stop.set()
        self._scheduler.clear()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=5)
        self._thread = None
        logger.info("Scheduler stopped")

    def _run_loop(self):
        while not self._stop.is_set():
            self._scheduler.run_pending()
            self._stop.wait(self.tick)

    def _cleanup_job(self):
        try:
            removed = self.monitor.cleanup()
            self._consecutive_failures = 0
            if removed:
                logger.info(f"Retention cleanup removed {removed} points")
        except Exception as e:
            self._failed("Retention cleanup", e)

    def _sample_job(self):
        try:
            self.monitor.record_system_metrics()
            self._consecutive_failures = 0
        except Exception as e:
            self._failed("System sampling", e)

    def _failed(self, job, error):
        self._consecutive_failures += 1
        logger.error(f"{job} failed ({self._consecutive_failures} consecutive): {error}")
        if self._consecutive_failures >= 5:
            logger.critical("5+ consecutive background job failures!")
