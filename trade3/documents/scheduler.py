"""Periodic document jobs run by the ``process_scheduled_documents`` command"""
import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from .models import STATUS_SCHEDULED, STATUS_COMPLETED, STATUS_DRAFT, STATUS_CANCELLED
from .services import WORKFLOWS

logger = logging.getLogger('trade3.documents')

# Kinds whose stale drafts are cancelled
CLEANUP_KINDS = ('sale', 'transfer')


def _move_documents(kind, queryset, new_status, action):
    workflow = WORKFLOWS[kind]
    succeeded, failed = 0, 0
    for document in queryset.order_by('date', 'id'):
        try:
            logger.info(f"{action} {kind} {document.code}")
            workflow.update_status(document, new_status)
            succeeded += 1
        except Exception:
            logger.error(f"Failed to {action.lower()} {kind} {document.code}", exc_info=True)
            failed += 1
    return succeeded, failed


def complete_due_documents(now=None):
    """Complete every SCHEDULED document whose date has come; {kind: (ok, failed)}"""
    now = now or timezone.now()
    results = {}
    for kind, workflow in WORKFLOWS.items():
        due = workflow.model.objects.filter(status=STATUS_SCHEDULED, date__lte=now)
        results[kind] = _move_documents(kind, due, STATUS_COMPLETED, 'Auto-completing')
    return results


def cancel_stale_drafts(now=None, max_age_hours=None):
    """Cancel DRAFT sales and transfers created more than ``max_age_hours`` ago"""
    now = now or timezone.now()
    if max_age_hours is None:
        max_age_hours = settings.STALE_DRAFT_HOURS
    cutoff = now - timedelta(hours=max_age_hours)
    results = {}
    for kind in CLEANUP_KINDS:
        stale = WORKFLOWS[kind].model.objects.filter(status=STATUS_DRAFT, created_at__lte=cutoff)
        results[kind] = _move_documents(kind, stale, STATUS_CANCELLED, 'Auto-cancelling')
    return results
