"""
In-memory store implementation for service tests.

Keeps ORM instances in dicts without a Session.  Scalar column defaults are
applied on add() the way a flush would, ids are assigned from per-table
counters, and atomic() snapshots every row's column values so a failing
block leaves the objects exactly as they were.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from sqlalchemy import inspect

from club_kernel.exceptions import MemberNotFoundError
from club_kernel.models import AccountingState, BankImportRule, Member, Transaction


def _column_keys(cls) -> list[str]:
    return [attr.key for attr in inspect(cls).column_attrs]


class _Table:
    """Rows of one model class keyed by id."""

    def __init__(self, cls):
        self.cls = cls
        self.keys = _column_keys(cls)
        self.rows: dict[int, object] = {}
        self.next_id = 1

    def insert(self, obj):
        for attr in inspect(self.cls).column_attrs:
            column = attr.columns[0]
            default = column.default
            if getattr(obj, attr.key) is None and default is not None and default.is_scalar:
                setattr(obj, attr.key, default.arg)
        if obj.id is None:
            obj.id = self.next_id
        self.next_id = max(self.next_id, obj.id + 1)
        self.rows[obj.id] = obj
        return obj

    def ordered(self) -> list:
        return [self.rows[key] for key in sorted(self.rows)]

    def snapshot(self):
        values = {
            row_id: {key: getattr(obj, key) for key in self.keys}
            for row_id, obj in self.rows.items()
        }
        return dict(self.rows), self.next_id, values

    def restore(self, snapshot) -> None:
        rows, next_id, values = snapshot
        for row_id, obj in rows.items():
            for key, value in values[row_id].items():
                setattr(obj, key, value)
        self.rows = rows
        self.next_id = next_id


class InMemoryMemberStore:
    def __init__(self, table: _Table):
        self._table = table

    def get(self, member_id: int, for_update: bool = False) -> Member:
        member = self._table.rows.get(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    def find_by_name(self, name: str) -> list[Member]:
        wanted = name.strip().lower()
        return [m for m in self._table.ordered() if m.name.strip().lower() == wanted]

    def list(self) -> list[Member]:
        return self._table.ordered()

    def add(self, member: Member) -> Member:
        return self._table.insert(member)

    def update(self, member: Member) -> Member:
        return member

    def delete(self, member: Member) -> None:
        del self._table.rows[member.id]


class InMemoryTransactionStore:
    def __init__(self, table: _Table):
        self._table = table

    def add(self, transaction: Transaction) -> Transaction:
        return self._table.insert(transaction)

    def list(
        self,
        member_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Transaction]:
        result = [
            tx
            for tx in self._table.ordered()
            if (member_id is None or tx.member_id == member_id)
            and (date_from is None or tx.date >= date_from)
            and (date_to is None or tx.date <= date_to)
        ]
        return sorted(result, key=lambda tx: (tx.date, tx.id))

    def latest_date(self, since: date | None = None) -> date | None:
        dates = [
            tx.date
            for tx in self._table.rows.values()
            if since is None or tx.date >= since
        ]
        return max(dates, default=None)


class InMemoryRuleStore:
    def __init__(self, table: _Table):
        self._table = table

    def list(
        self,
        iban: str | None = None,
        member_id: int | None = None,
    ) -> list[BankImportRule]:
        return [
            rule
            for rule in self._table.ordered()
            if (iban is None or rule.iban == iban)
            and (member_id is None or rule.member_id == member_id)
        ]

    def get(self, member_id: int, iban: str) -> BankImportRule | None:
        for rule in self._table.ordered():
            if rule.member_id == member_id and rule.iban == iban:
                return rule
        return None

    def add(self, rule: BankImportRule) -> BankImportRule:
        return self._table.insert(rule)

    def delete(self, rule: BankImportRule) -> None:
        del self._table.rows[rule.id]


class InMemoryStateStore:
    def __init__(self, table: _Table):
        self._table = table

    def get(self) -> AccountingState:
        state = self._table.rows.get(AccountingState.SINGLETON_ID)
        if state is None:
            state = self._table.insert(AccountingState(id=AccountingState.SINGLETON_ID))
        return state

    def update(self, state: AccountingState) -> AccountingState:
        return state


class InMemoryStores:
    """Stores bundle backed by dicts."""

    def __init__(self):
        self._tables = {
            cls: _Table(cls)
            for cls in (Member, Transaction, BankImportRule, AccountingState)
        }
        self.members = InMemoryMemberStore(self._tables[Member])
        self.transactions = InMemoryTransactionStore(self._tables[Transaction])
        self.rules = InMemoryRuleStore(self._tables[BankImportRule])
        self.state = InMemoryStateStore(self._tables[AccountingState])

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshots = {cls: table.snapshot() for cls, table in self._tables.items()}
        try:
            yield
        except Exception:
            for cls, table in self._tables.items():
                table.restore(snapshots[cls])
            raise
