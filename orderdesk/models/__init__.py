"""Models package - order value objects and SQLAlchemy models."""
# Order drafts (value objects)
from orderdesk.models.order_draft import LineItem, OrderDraft, LineTotals, AggregatedTotals
from orderdesk.models.order_policy import OrderType, TaxDiscountPolicy

# Persistence
from orderdesk.models.order_submission import OrderSubmission, SubmissionAction, SubmissionStatus

__all__ = [
    'LineItem', 'OrderDraft', 'LineTotals', 'AggregatedTotals',
    'OrderType', 'TaxDiscountPolicy',
    'OrderSubmission', 'SubmissionAction', 'SubmissionStatus',
]
