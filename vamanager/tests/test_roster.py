import pytest
from decimal import Decimal
from vamanager.models import TwitterAccount, VACreator
from vamanager.services import accounts, finance, roster
from vamanager.services.errors import DuplicateRecordError, InvalidFieldError, RecordNotFoundError

def test_va_crud(db, org):
    va = roster.create_va(db, org.id, {"name": "  Maria ", "email": "maria@example.com"})
    assert va.name == "Maria"

    va = roster.update_va(db, org.id, va.id, {"notes": "night shift"})
    assert va.notes == "night shift"
    assert [v.name for v in roster.list_vas(db, org.id)] == ["Maria"]

    roster.delete_va(db, org.id, va.id)
    with pytest.raises(RecordNotFoundError):
        roster.get_va(db, org.id, va.id)

def test_va_names_are_unique_per_org(db, org, other_org):
    roster.create_va(db, org.id, {"name": "Maria"})
    with pytest.raises(DuplicateRecordError):
        roster.create_va(db, org.id, {"name": "maria"})
    roster.create_va(db, other_org.id, {"name": "Maria"})

def test_blank_names_rejected(db, org):
    with pytest.raises(InvalidFieldError):
        roster.create_va(db, org.id, {"name": "   "})
    with pytest.raises(InvalidFieldError):
        roster.create_creator(db, org.id, {"name": ""})

def test_creator_crud(db, org):
    creator = roster.create_creator(db, org.id, {"name": "Luna", "photo_url": "https://cdn/luna.jpg"})
    other = roster.create_creator(db, org.id, {"name": "Aria"})
    assert [c.name for c in roster.list_creators(db, org.id)] == ["Aria", "Luna"]

    with pytest.raises(DuplicateRecordError):
        roster.update_creator(db, org.id, other.id, {"name": "LUNA"})

    roster.delete_creator(db, org.id, creator.id)
    assert [c.name for c in roster.list_creators(db, org.id)] == ["Aria"]

def test_assignment_is_idempotent(db, org):
    va = roster.create_va(db, org.id, {"name": "Maria"})
    creator = roster.create_creator(db, org.id, {"name": "Luna"})

    first = roster.assign_creator_to_va(db, org.id, va.id, creator.id)
    second = roster.assign_creator_to_va(db, org.id, va.id, creator.id)
    assert first.id == second.id
    assert db.query(VACreator).count() == 1

    assert [c.id for c in roster.get_creators_by_va(db, org.id, va.id)] == [creator.id]
    assert [v.id for v in roster.get_vas_for_creator(db, org.id, creator.id)] == [va.id]

    roster.remove_creator_from_va(db, org.id, va.id, creator.id)
    assert roster.get_creators_by_va(db, org.id, va.id) == []
    with pytest.raises(RecordNotFoundError):
        roster.remove_creator_from_va(db, org.id, va.id, creator.id)

def test_cannot_assign_across_orgs(db, org, other_org):
    va = roster.create_va(db, org.id, {"name": "Maria"})
    foreign = roster.create_creator(db, other_org.id, {"name": "Luna"})
    with pytest.raises(RecordNotFoundError):
        roster.assign_creator_to_va(db, org.id, va.id, foreign.id)

def test_relations_include_unassigned_vas(db, org):
    maria = roster.create_va(db, org.id, {"name": "Maria"})
    idle = roster.create_va(db, org.id, {"name": "Idle"})
    luna = roster.create_creator(db, org.id, {"name": "Luna"})
    aria = roster.create_creator(db, org.id, {"name": "Aria"})
    roster.assign_creator_to_va(db, org.id, maria.id, luna.id)
    roster.assign_creator_to_va(db, org.id, maria.id, aria.id)

    relations = roster.get_all_va_creator_relations(db, org.id)
    assert sorted(relations[maria.id]) == sorted([luna.id, aria.id])
    assert relations[idle.id] == []

def test_complete_va_data(db, cipher, org):
    va = roster.create_va(db, org.id, {"name": "Maria"})
    creator = roster.create_creator(db, org.id, {"name": "Luna"})
    roster.assign_creator_to_va(db, org.id, va.id, creator.id)
    accounts.create_account(db, cipher, org.id, "twitter", {"username": "luna_x", "password": "tw", "va_id": va.id})
    accounts.create_account(db, cipher, org.id, "gmail", {"email": "maria@gmail.com", "password": "gm", "va_id": va.id})

    data = roster.get_complete_va_data(db, cipher, org.id, va.id)
    assert data["va"].id == va.id
    assert [c.name for c in data["creators"]] == ["Luna"]
    assert [a["password"] for a in data["twitter_accounts"]] == ["tw"]
    assert data["instagram_accounts"] == []
    assert [a["email"] for a in data["gmail_accounts"]] == ["maria@gmail.com"]

    creator_data = roster.get_complete_creator_data(db, cipher, org.id, creator.id)
    assert [v.id for v in creator_data["vas"]] == [va.id]

def test_deleting_va_unlinks_accounts_and_ledgers(db, cipher, org):
    va = roster.create_va(db, org.id, {"name": "Maria"})
    account = accounts.create_account(db, cipher, org.id, "twitter", {"username": "x", "va_id": va.id})
    payment = finance.create_entry(db, org.id, "payments", {"label": "Weekly pay", "amount": Decimal("50"), "va_id": va.id})

    roster.delete_va(db, org.id, va.id)
    db.expire_all()

    assert db.get(TwitterAccount, account["id"]).va_id is None
    assert finance.get_entry(db, org.id, "payments", payment.id).va_id is None
