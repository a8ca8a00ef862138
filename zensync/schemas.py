"""
Pydantic models for the ZenMoney diff protocol.

Field names follow the wire format of the ZenMoney API so that a diff can be
validated straight from JSON and a snapshot can be written back in the same
shape. Extra fields the server sends are kept on the model.
"""
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EntityType(str, Enum):
    """Entity collections carried by a diff, keyed by their wire name."""

    INSTRUMENT = "instrument"
    COMPANY = "company"
    USER = "user"
    ACCOUNT = "account"
    TAG = "tag"
    MERCHANT = "merchant"
    BUDGET = "budget"
    REMINDER = "reminder"
    REMINDER_MARKER = "reminderMarker"
    TRANSACTION = "transaction"

    @classmethod
    def from_tag(cls, tag: str) -> Optional["EntityType"]:
        """Resolve a deletion's object tag, None for types not modeled here."""
        try:
            return cls(tag)
        except ValueError:
            return None


class Entity(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    changed: Optional[int] = None


class Instrument(Entity):
    id: int
    title: Optional[str] = None
    shortTitle: Optional[str] = None
    symbol: Optional[str] = None
    rate: Optional[float] = None


class Company(Entity):
    id: int
    title: Optional[str] = None
    fullTitle: Optional[str] = None
    www: Optional[str] = None
    country: Optional[Union[int, str]] = None


class User(Entity):
    id: int
    login: Optional[str] = None
    currency: Optional[int] = None
    parent: Optional[int] = None


class Account(Entity):
    id: str
    user: Optional[int] = None
    role: Optional[int] = None
    instrument: Optional[int] = None
    company: Optional[int] = None
    type: Optional[str] = None  # cash, ccard, checking, loan, deposit, emoney, debt
    title: Optional[str] = None
    syncID: Optional[List[str]] = None
    balance: Optional[float] = None
    startBalance: Optional[float] = None
    creditLimit: Optional[float] = None
    inBalance: Optional[bool] = None
    savings: Optional[bool] = None
    archive: Optional[bool] = None


class Tag(Entity):
    id: str
    user: Optional[int] = None
    title: Optional[str] = None
    parent: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[int] = None
    showIncome: Optional[bool] = None
    showOutcome: Optional[bool] = None
    budgetIncome: Optional[bool] = None
    budgetOutcome: Optional[bool] = None


class Merchant(Entity):
    id: str
    user: Optional[int] = None
    title: Optional[str] = None


class Budget(Entity):
    """Monthly budget line. Has no id; identified by (tag, date)."""

    user: Optional[int] = None
    tag: Optional[str] = None
    date: str
    income: Optional[float] = None
    incomeLock: Optional[bool] = None
    outcome: Optional[float] = None
    outcomeLock: Optional[bool] = None


class _Operation(Entity):
    """Fields shared by transactions, reminders and reminder markers."""

    id: str
    user: Optional[int] = None
    incomeInstrument: Optional[int] = None
    incomeAccount: Optional[str] = None
    income: Optional[float] = None
    outcomeInstrument: Optional[int] = None
    outcomeAccount: Optional[str] = None
    outcome: Optional[float] = None
    tag: Optional[List[str]] = None
    merchant: Optional[str] = None
    payee: Optional[str] = None
    comment: Optional[str] = None


class Reminder(_Operation):
    interval: Optional[str] = None
    step: Optional[int] = None
    points: Optional[List[int]] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    notify: Optional[bool] = None


class ReminderMarker(_Operation):
    date: Optional[str] = None
    reminder: Optional[str] = None
    state: Optional[str] = None  # planned, processed, deleted
    notify: Optional[bool] = None


class Transaction(_Operation):
    created: Optional[int] = None
    deleted: Optional[bool] = None
    hold: Optional[bool] = None
    originalPayee: Optional[str] = None
    date: Optional[str] = None
    mcc: Optional[int] = None
    reminderMarker: Optional[str] = None


class Deletion(BaseModel):
    """Server notice that one entity was removed."""

    model_config = ConfigDict(extra="allow")

    id: Union[str, int]
    object: str
    stamp: Optional[int] = None
    user: Optional[int] = None


class EntityCollections(BaseModel):
    """Optional collection per entity type; None means "not present"."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    server_timestamp: int = Field(alias="serverTimestamp")
    instrument: Optional[List[Instrument]] = None
    company: Optional[List[Company]] = None
    user: Optional[List[User]] = None
    account: Optional[List[Account]] = None
    tag: Optional[List[Tag]] = None
    merchant: Optional[List[Merchant]] = None
    budget: Optional[List[Budget]] = None
    reminder: Optional[List[Reminder]] = None
    reminder_marker: Optional[List[ReminderMarker]] = Field(default=None, alias="reminderMarker")
    transaction: Optional[List[Transaction]] = None

    def get_collection(self, entity_type: EntityType) -> Optional[list]:
        return getattr(self, _ATTRIBUTES[entity_type])

    def set_collection(self, entity_type: EntityType, entities: Optional[list]) -> None:
        setattr(self, _ATTRIBUTES[entity_type], entities)

    def counts(self) -> dict:
        """Number of entities per present collection, keyed by wire name."""
        result = {}
        for entity_type in EntityType:
            entities = self.get_collection(entity_type)
            if entities is not None:
                result[entity_type.value] = len(entities)
        return result

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class DiffResponse(EntityCollections):
    """Server answer to a diff request: upserts plus deletions."""

    deletion: Optional[List[Deletion]] = None


class Snapshot(EntityCollections):
    """Merged local view of every entity collection at a watermark."""

    @model_validator(mode="before")
    @classmethod
    def _drop_deletions(cls, data):
        # deletions are folded in at merge time, never stored
        if isinstance(data, dict) and "deletion" in data:
            data = {key: value for key, value in data.items() if key != "deletion"}
        return data

    @classmethod
    def from_diff(cls, diff: DiffResponse) -> "Snapshot":
        data = diff.model_dump(by_alias=True, exclude={"deletion"})
        return cls.model_validate(data)


class DiffRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_client_timestamp: int = Field(alias="currentClientTimestamp")
    server_timestamp: int = Field(alias="serverTimestamp")
    force_fetch: Optional[List[EntityType]] = Field(default=None, alias="forceFetch")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


_ATTRIBUTES = {
    entity_type: ("reminder_marker" if entity_type is EntityType.REMINDER_MARKER else entity_type.value)
    for entity_type in EntityType
}
