"""Prometheus metrics for jobworker."""
from prometheus_client import Counter, Gauge, Histogram, Info


# Job metrics
jobs_succeeded_total = Counter(
    'jobworker_jobs_succeeded_total',
    'Total number of successful jobs',
    ['work_type']
)

jobs_failed_total = Counter(
    'jobworker_jobs_failed_total',
    'Total number of failed jobs',
    ['work_type']
)

jobs_unhandled_total = Counter(
    'jobworker_jobs_unhandled_total',
    'Total number of jobs with no registered handler'
)

job_duration_seconds = Histogram(
    'jobworker_job_duration_seconds',
    'Job execution duration in seconds',
    ['work_type', 'status'],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0]
)

# Worker metrics
workers_active = Gauge(
    'jobworker_workers_active',
    'Number of worker loops currently draining'
)

store_connection_errors_total = Counter(
    'jobworker_store_connection_errors_total',
    'Times a store connection could not be acquired',
    ['stage']
)

# Queue metrics
queue_dequeued_total = Counter(
    'jobworker_queue_dequeued_total',
    'Total number of jobs dequeued',
    ['queue_name']
)

# System info
system_info = Info(
    'jobworker_system',
    'jobworker system information'
)


def record_job_succeeded(work_type: str, duration: float) -> None:
    """Record job success metric."""
    jobs_succeeded_total.labels(work_type=work_type).inc()
    job_duration_seconds.labels(work_type=work_type, status="success").observe(duration)


def record_job_failed(work_type: str, duration: float) -> None:
    """Record job failure metric."""
    jobs_failed_total.labels(work_type=work_type).inc()
    job_duration_seconds.labels(work_type=work_type, status="failed").observe(duration)


def record_job_unhandled() -> None:
    """Record a job whose work type has no handler."""
    jobs_unhandled_total.inc()


def record_connection_error(stage: str) -> None:
    """Record a failed store connection acquisition at ``stage``."""
    store_connection_errors_total.labels(stage=stage).inc()


def record_queue_dequeue(queue_name: str) -> None:
    """Record job dequeued from queue."""
    queue_dequeued_total.labels(queue_name=queue_name).inc()


def init_system_info(version: str) -> None:
    """
    Initialize system information metric.

    Args:
        version: Application version
    """
    system_info.info({
        'version': version,
        'name': 'jobworker'
    })
