"""
Stored Document Shapes

The document store holds two record shapes:

- current documents: type / description / amount / category / date
- legacy documents from the first release: name / price only

DESIGN DECISION: Both shapes are modelled as a tagged union here, at the
store-adapter boundary, and normalized to Transaction before anything else
sees them. The aggregation and interchange code only ever handles the
canonical shape.
"""

from datetime import datetime
from typing import Any, Literal, Mapping, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict

from src.models.transaction import DEFAULT_CATEGORY, Transaction, TransactionType
from src.queries.formatting import get_current_date


logger = structlog.get_logger(__name__)


def _to_amount(value: Any) -> float:
    # amounts were written as text by some old clients
    if isinstance(value, str):
        return float(value.strip())
    return float(value or 0)


class TransactionDocument(BaseModel):
    """A document in the current shape."""
    model_config = ConfigDict(extra="ignore")

    kind: Literal["transaction"] = "transaction"
    type: str
    description: str
    amount: Union[float, str, None] = None
    category: Optional[str] = None
    date: Optional[str] = None
    createdAt: Optional[datetime] = None
    userId: Optional[str] = None

    def to_transaction(self, doc_id: str, user_id: str) -> Transaction:
        return Transaction(
            id=doc_id,
            type=self.type,
            description=self.description,
            amount=_to_amount(self.amount),
            category=self.category or DEFAULT_CATEGORY,
            date=self.date or get_current_date(),
            created_at=self.createdAt,
            user_id=self.userId or user_id,
        )


class LegacyExpenseDocument(BaseModel):
    """A first-release expense document: just a name and a price."""
    model_config = ConfigDict(extra="ignore")

    kind: Literal["legacy_expense"] = "legacy_expense"
    name: str
    price: Union[float, str]

    def to_transaction(self, doc_id: str, user_id: str) -> Transaction:
        return Transaction(
            id=doc_id,
            type=TransactionType.EXPENSE,
            description=self.name,
            amount=_to_amount(self.price),
            category=DEFAULT_CATEGORY,
            date=get_current_date(),
            user_id=user_id,
        )


StoredDocument = Union[TransactionDocument, LegacyExpenseDocument]


def classify_document(data: Mapping[str, Any]) -> Optional[StoredDocument]:
    """
    Decide which shape a raw document has.

    Returns None for documents matching neither shape.

    Raises:
        pydantic.ValidationError: the document has the marker fields of a shape but
            their values have the wrong types.
    """
    if data.get("type") and data.get("description"):
        return TransactionDocument.model_validate(dict(data))
    if data.get("name") and data.get("price"):
        return LegacyExpenseDocument.model_validate(dict(data))
    return None


def normalize_document(
    doc_id: str,
    data: Mapping[str, Any],
    user_id: str,
) -> Optional[Transaction]:
    """
    Turn a raw stored document into a canonical Transaction.

    Unrecognized or invalid documents are logged and skipped (None), so one
    bad document never hides the rest of a user's data.
    """
    try:
        document = classify_document(data)
        if document is None:
            logger.warning("document_skipped", doc_id=doc_id, reason="unrecognized_shape")
            return None
        return document.to_transaction(doc_id, user_id)
    except ValueError as e:
        logger.warning("document_skipped", doc_id=doc_id, reason="invalid", error=str(e))
        return None
