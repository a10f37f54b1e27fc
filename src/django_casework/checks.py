"""System checks for the workflow table and status graphs."""

from django.core import checks

from . import workflow


def _graph_errors():
    graphs = [
        (
            'document',
            workflow.DocumentStatus.values,
            workflow.DOCUMENT_TRANSITIONS,
            workflow.DocumentStatus.DRAFT,
            [workflow.DocumentStatus.APPROVED],
        ),
        (
            'case',
            workflow.CaseStatus.values,
            workflow.CASE_TRANSITIONS,
            workflow.CaseStatus.NEW,
            [workflow.CaseStatus.COMPLETED, workflow.CaseStatus.CANCELLED],
        ),
        (
            'guide instruction',
            workflow.GuideStatus.values,
            workflow.GUIDE_TRANSITIONS,
            workflow.GuideStatus.DRAFT,
            [workflow.GuideStatus.DISTRIBUTED],
        ),
    ]
    for label, states, transitions, initial, terminal in graphs:
        normalized = {str(k): [str(v) for v in vs] for k, vs in transitions.items()}
        for message in workflow.validate_state_graph(
            list(states), normalized, str(initial), [str(t) for t in terminal],
        ):
            yield f"{label} status graph: {message}"


def check_workflow_tables(app_configs=None, **kwargs):
    """Report a broken document workflow table or status graph as casework.E001."""
    messages = [
        f"document workflow table: {message}"
        for message in workflow.validate_workflow_table(workflow.WORKFLOW_STEPS)
    ]
    messages.extend(_graph_errors())
    return [
        checks.Error(message, id='casework.E001')
        for message in messages
    ]
