from datetime import date
from decimal import Decimal

import pytest

from family_ledger.config import Settings
from family_ledger.errors import DuplicateUserError, LastAdminError
from family_ledger.models import Category, Expense, Family, FamilyMember, FutureExpense, Income, Role, User, utcnow
from family_ledger.routers.families import username_from_email
from family_ledger.security import (
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    generate_temporary_password,
    hash_password,
    verify_password,
)
from family_ledger.stores import ExpenseStore, FamilyStore, FutureExpenseStore, UserStore, month_of


@pytest.fixture
def users(session):
    return UserStore(session)


@pytest.fixture
def families(session):
    return FamilyStore(session)


def make_user(users, username):
    return users.create(
        name=username.title(), email=f"{username}@example.com", password_hash=hash_password("pw"), username=username
    )


class TestUserStore:
    def test_duplicate_email(self, users):
        make_user(users, "alice")
        with pytest.raises(DuplicateUserError) as exc_info:
            users.create(name="X", email="alice@example.com", password_hash="h", username="someone")
        assert exc_info.value.field == "email"

    def test_duplicate_username(self, users):
        make_user(users, "alice")
        with pytest.raises(DuplicateUserError) as exc_info:
            users.create(name="X", email="x@example.com", password_hash="h", username="alice")
        assert exc_info.value.field == "username"

    def test_update_profile_without_fields(self, users):
        alice = make_user(users, "alice")
        assert users.update_profile(alice.id) is None


class TestFamilyStore:
    def test_last_admin_is_protected(self, users, families):
        alice = make_user(users, "alice")
        bob = make_user(users, "bob")
        family = families.create_family("Smiths", alice.id)
        families.add_member(family.id, bob.id)

        with pytest.raises(LastAdminError):
            families.add_member(family.id, alice.id, Role.MEMBER.value)
        with pytest.raises(LastAdminError):
            families.remove_member(family.id, alice.id)

        families.add_member(family.id, bob.id, Role.ADMIN.value)
        families.add_member(family.id, alice.id, Role.MEMBER.value)
        assert families.count_admins(family.id) == 1
        assert families.get_membership(family.id, alice.id).role == Role.MEMBER.value

    def test_add_member_twice_keeps_one_row(self, users, families):
        alice = make_user(users, "alice")
        bob = make_user(users, "bob")
        family = families.create_family("Smiths", alice.id)
        families.add_member(family.id, bob.id)
        families.add_member(family.id, bob.id)
        assert len(families.list_members(family.id)) == 2

    def test_is_admin_over(self, users, families):
        alice = make_user(users, "alice")
        bob = make_user(users, "bob")
        carol = make_user(users, "carol")
        family = families.create_family("Smiths", alice.id)
        families.add_member(family.id, bob.id)

        assert families.is_admin_over(alice.id, bob.id)
        assert not families.is_admin_over(bob.id, alice.id)
        assert not families.is_admin_over(alice.id, carol.id)


class TestLedgerStores:
    def test_changes_drops_unknown_and_null_required_fields(self, session):
        store = ExpenseStore(session)
        assert store.changes({"amount": None, "note": None, "family_id": 3, "date": date(2024, 1, 1)}) == {
            "note": None,
            "date": date(2024, 1, 1),
        }

    def test_update_without_changes_returns_none(self, session):
        assert ExpenseStore(session).update(1, 1, {}) is None

    def test_total_active_monthly_uses_given_day(self, users, families, session):
        alice = make_user(users, "alice")
        family = families.create_family("Smiths", alice.id)
        store = FutureExpenseStore(session)
        for monthly, end in (("100", "2024-05"), ("40.50", "2024-06"), ("7", "2024-04")):
            store.create(
                family_id=family.id,
                user_id=alice.id,
                title="EMI",
                total_amount=Decimal("1000"),
                monthly_amount=Decimal(monthly),
                start_month="2024-01",
                end_month=end,
            )
        assert store.total_active_monthly(family.id, today=date(2024, 5, 31)) == Decimal("140.5")
        active = store.list(family.id, active_only=True, today=date(2024, 6, 1))
        assert [row["end_month"] for row in active] == ["2024-06"]


def test_created_at_defaults_are_timezone_aware():
    assert utcnow().tzinfo is not None
    for model in (User, Family, FamilyMember, Category, Expense, Income, FutureExpense):
        assert model.__table__.c.created_at.type.timezone is True, model.__name__
    user = User(name="Alice", email="alice@example.com", password_hash="h")
    assert user.created_at.tzinfo is not None


def test_writes_succeed_with_aware_timestamps(users, families):
    alice = make_user(users, "alice")
    family = families.create_family("Smiths", alice.id)
    assert family.id is not None
    assert families.get_membership(family.id, alice.id).role == Role.ADMIN.value


def test_month_of():
    assert month_of(date(2024, 3, 9)) == "2024-03"


class TestSecurity:
    def test_password_hashing(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)
        assert not verify_password("", hashed)

    def test_temporary_password_mixes_letters_and_digits(self):
        for _ in range(20):
            pw = generate_temporary_password()
            assert len(pw) == 12
            assert any(c.isdigit() for c in pw) and any(c.isalpha() for c in pw)

    def test_token_round_trip_and_rejection(self, users):
        alice = make_user(users, "alice")
        settings = Settings(jwt_secret="one")
        token = create_access_token(alice, settings)
        assert decode_access_token(token, settings)["id"] == alice.id
        with pytest.raises(InvalidTokenError):
            decode_access_token(token, Settings(jwt_secret="two"))


@pytest.mark.parametrize(
    "email, expected",
    [
        ("john.doe@example.com", "john_doe"),
        ("jo@example.com", "jo_user"),
        ("mary+home@example.com", "mary_home"),
    ],
)
def test_username_from_email(email, expected):
    assert username_from_email(email) == expected
