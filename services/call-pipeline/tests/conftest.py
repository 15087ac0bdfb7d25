"""Shared fixtures for call-pipeline tests."""

import pytest
from fakes import InMemoryCallStore

from domain.models import BorrowerInformation, FinancialInformation, LeadFields, LoanDetails
from infrastructure.broadcast_channel import BroadcastChannel
from infrastructure.json_file_store import JsonFileCallStore
from repositories.persistence_gateway import PersistenceGateway


@pytest.fixture
def primary_store() -> InMemoryCallStore:
    return InMemoryCallStore()


@pytest.fixture
def fallback_store(tmp_path) -> JsonFileCallStore:
    return JsonFileCallStore(tmp_path / "fallback" / "call_records.json")


@pytest.fixture
def gateway(primary_store, fallback_store) -> PersistenceGateway:
    return PersistenceGateway(primary_store, fallback_store)


@pytest.fixture
def broadcast() -> BroadcastChannel:
    return BroadcastChannel(queue_size=50)


@pytest.fixture
def purchase_fields() -> LeadFields:
    """A purchase inquiry with contact details but no credit score or property yet."""
    return LeadFields(
        borrower_information=BorrowerInformation(
            full_name="Dana Whitfield",
            phone_number="+13105550142",
            email_address="dana@example.com",
        ),
        loan_details=LoanDetails(loan_purpose="purchase", requested_loan_amount=640000.0),
        financial_information=FinancialInformation(annual_income=185000.0),
        summary="First-time buyer looking for pre-approval.",
        action_items=["Send pre-approval checklist"],
    )
