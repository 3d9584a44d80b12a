"""
Project health score.

Penalty model: start at 100, subtract a capped deduction per category,
clamp to 0–100. Categories compound, so the raw total can go below zero
before the clamp.

    Category                       Deduction                 Cap
    ─────────────────────────────  ────────────────────────  ───
    task completion below 50 %     15                         15
    overdue tasks                  5 each                     20
    overdue RFIs                   7 each                     15
      else more than 3 open RFIs   5                           5
    overdue submittals             5 each                     15
    overdue milestones             10 each                    15
"""

from buildtrack.domain.dates import is_overdue, plural
from buildtrack.domain.statuses import MILESTONE, RFI, SUBMITTAL, TASK, TERMINAL_STATUSES

ON_TRACK_THRESHOLD = 85
AT_RISK_THRESHOLD = 60

STATUS_COLORS = {
    "On Track": "#22c55e",
    "At Risk": "#f59e0b",
    "Critical": "#ef4444",
}


def _count_overdue(items, item_type, today):
    terminal = TERMINAL_STATUSES[item_type]
    return sum(
        1 for item in items
        if is_overdue(item.get("due_date"), item.get("status"), terminal, today)
    )


def health_status(score: int) -> str:
    if score >= ON_TRACK_THRESHOLD:
        return "On Track"
    if score >= AT_RISK_THRESHOLD:
        return "At Risk"
    return "Critical"


def compute_health_score(tasks, rfis, submittals, milestones, today=None) -> dict:
    """Score a project from its current work-item snapshot.

    Args:
        tasks, rfis, submittals, milestones: lists of row dicts exposing at
            least ``status`` and ``due_date``.
        today: reference day (defaults to ``date.today()``).

    Returns:
        dict with ``score`` (0–100), ``status``, ``color`` and ``factors``,
        a list of ``{"type": "warning"|"danger"|"success", "text": ...}``.
    """
    tasks = tasks or []
    rfis = rfis or []
    submittals = submittals or []
    milestones = milestones or []

    score = 100
    factors = []

    total_tasks = len(tasks)
    completed_tasks = sum(1 for t in tasks if t.get("status") == "Completed")
    if total_tasks > 0:
        completion_rate = completed_tasks / total_tasks
        if completion_rate < 0.5:
            score -= 15
            factors.append({
                "type": "warning",
                "text": f"{round(completion_rate * 100)}% tasks complete",
            })

    overdue_tasks = _count_overdue(tasks, TASK, today)
    if overdue_tasks > 0:
        score -= min(overdue_tasks * 5, 20)
        factors.append({"type": "danger", "text": f"{plural(overdue_tasks, 'task')} overdue"})

    open_rfis = sum(1 for r in rfis if r.get("status") == "Open")
    overdue_rfis = _count_overdue(rfis, RFI, today)
    if overdue_rfis > 0:
        score -= min(overdue_rfis * 7, 15)
        factors.append({"type": "danger", "text": f"{plural(overdue_rfis, 'RFI')} overdue"})
    elif open_rfis > 3:
        score -= 5
        factors.append({"type": "warning", "text": f"{open_rfis} open RFIs"})

    overdue_submittals = _count_overdue(submittals, SUBMITTAL, today)
    if overdue_submittals > 0:
        score -= min(overdue_submittals * 5, 15)
        factors.append({
            "type": "danger",
            "text": f"{plural(overdue_submittals, 'submittal')} overdue",
        })

    overdue_milestones = sum(
        1 for m in milestones
        if not m.get("is_completed")
        and is_overdue(m.get("due_date"), m.get("status"), TERMINAL_STATUSES[MILESTONE], today)
    )
    if overdue_milestones > 0:
        score -= min(overdue_milestones * 10, 15)
        factors.append({
            "type": "danger",
            "text": f"{plural(overdue_milestones, 'milestone')} behind",
        })

    if not factors:
        factors.append({"type": "success", "text": "All items on track"})

    score = max(0, min(100, score))
    status = health_status(score)
    return {
        "score": score,
        "status": status,
        "color": STATUS_COLORS[status],
        "factors": factors,
    }
