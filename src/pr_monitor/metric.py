import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, push_to_gateway

from pr_monitor import config

logger = logging.getLogger("pr_monitor")

push_registry = CollectorRegistry()

api_call_count = Counter(
    "pr_monitor_num_api_calls",
    "Total number of GitHub API calls",
    labelnames=["endpoint"],
    registry=push_registry,
)

open_prs = Gauge(
    "pr_monitor_open_prs",
    "Number of open PRs seen by the last monitoring pass",
    registry=push_registry,
)

pr_issue_count = Gauge(
    "pr_monitor_pr_issues",
    "Number of PRs per issue category in the last monitoring pass",
    labelnames=["category"],
    registry=push_registry,
)

auto_assign_count = Counter(
    "pr_monitor_auto_assign",
    "Auto-assignment attempts via CODEOWNERS",
    labelnames=["result"],
    registry=push_registry,
)

action_error_count = Counter(
    "pr_monitor_action_errors",
    "Corrective actions that failed without aborting the pass",
    labelnames=["action"],
    registry=push_registry,
)


def record_api_call(endpoint: str) -> None:
    api_call_count.labels(endpoint=endpoint).inc()


def push_metrics(job: str = "pr-monitor") -> bool:
    if config.PUSH_GATEWAY is None:
        return False
    try:
        push_to_gateway(config.PUSH_GATEWAY, job=job, registry=push_registry)
    except OSError as e:
        logger.warning("Failed to push metrics to %s: %s", config.PUSH_GATEWAY, e)
        return False
    return True
