"""
Unit tests for sales order payment summary.
"""

from decimal import Decimal

from orderdesk.services.payment_summary_service import (
    credit_inputs, payment_summary_to_dict, summarize_payment,
)


class TestSummarizePayment:
    """Tests for summarize_payment."""

    def test_without_credit_limit(self):
        summary = summarize_payment(Decimal('204000'), paid_amount='100000')

        assert summary['debt_amount'] == Decimal('104000')
        assert summary['can_use_credit'] is False
        assert summary['available_credit'] is None
        assert summary['exceeds_limit'] is None

    def test_within_available_credit(self):
        summary = summarize_payment(
            Decimal('500000'), paid_amount=0, credit_limit='1000000', current_debt='300000')

        assert summary['can_use_credit'] is True
        assert summary['available_credit'] == Decimal('700000')
        assert summary['exceeds_limit'] is False
        assert summary['shortfall'] == Decimal('0')

    def test_exceeding_available_credit(self):
        summary = summarize_payment(
            Decimal('900000'), paid_amount=100000, credit_limit=1000000, current_debt=500000)

        assert summary['debt_amount'] == Decimal('800000')
        assert summary['exceeds_limit'] is True
        assert summary['shortfall'] == Decimal('300000')

    def test_debt_over_limit_leaves_no_credit(self):
        summary = summarize_payment(Decimal('10'), credit_limit=100, current_debt=150)
        assert summary['available_credit'] == Decimal('0')
        assert summary['exceeds_limit'] is True

    def test_invalid_paid_amount_counts_as_zero(self):
        summary = summarize_payment(Decimal('50'), paid_amount='abc')
        assert summary['paid_amount'] == Decimal('0')
        assert summary['debt_amount'] == Decimal('50')


class TestPaymentHelpers:
    """Tests for credit_inputs and payment_summary_to_dict."""

    def test_credit_inputs(self):
        inputs = credit_inputs({
            'paidAmount': 5,
            'customer': {'creditLimit': 100, 'currentDebt': 20},
        })
        assert inputs == {'paid_amount': 5, 'credit_limit': 100, 'current_debt': 20}

    def test_credit_inputs_ignores_bad_customer(self):
        assert credit_inputs({'customer': 'vip'})['credit_limit'] is None
        assert credit_inputs(None) == {'paid_amount': None, 'credit_limit': None, 'current_debt': None}

    def test_to_dict_stringifies_decimals(self):
        data = payment_summary_to_dict(summarize_payment(Decimal('10.50'), paid_amount=0))
        assert data['grand_total'] == '10.50'
        assert data['can_use_credit'] is False
