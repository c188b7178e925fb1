from datetime import datetime, timezone
from unittest.mock import patch
from sqlalchemy.exc import OperationalError
from vamanager.models import TwitterAccount, InstagramAccount, GmailAccount
from vamanager.security.credentials import DecodeOutcome, SCHEME_AESGCM, SCHEME_OBFUSCATED, obfuscate
from vamanager.services import accounts, maintenance, warmup

def _seed_legacy_rows(db, organization_id):
    rows = [
        TwitterAccount(organization_id=organization_id, username="legacy", encrypted_password=obfuscate("Tom2024!Secure")),
        TwitterAccount(organization_id=organization_id, username="plain", encrypted_password="hunter2"),
        TwitterAccount(organization_id=organization_id, username="empty", encrypted_password=None),
        InstagramAccount(organization_id=organization_id, username="tagged", encrypted_password=obfuscate("ig-pass"),
                         password_scheme=SCHEME_OBFUSCATED),
        GmailAccount(organization_id=organization_id, email="va@gmail.com", encrypted_password=obfuscate("mail-pass")),
    ]
    db.add_all(rows)
    db.commit()
    return rows

def test_reencrypt_moves_legacy_rows_to_cipher(db, cipher, org):
    legacy, plain, empty, tagged, gmail = _seed_legacy_rows(db, org.id)
    sealed = accounts.create_account(db, cipher, org.id, "twitter", {"username": "sealed", "password": "already"})

    stats = maintenance.reencrypt_accounts(db, cipher, organization_id=org.id)

    assert stats["migrated"] == 4
    assert stats["skipped"] == 1
    assert stats["errors"] == 0
    assert stats["ambiguous"] == [{"platform": "twitter", "id": plain.id}]

    expected = {
        (TwitterAccount, legacy.id): "Tom2024!Secure",
        (TwitterAccount, plain.id): "hunter2",
        (InstagramAccount, tagged.id): "ig-pass",
        (GmailAccount, gmail.id): "mail-pass",
        (TwitterAccount, sealed["id"]): "already",
    }
    for (model, row_id), plaintext in expected.items():
        row = db.get(model, row_id)
        assert row.password_scheme == SCHEME_AESGCM
        result = cipher.decode_result(row.encrypted_password, row.password_scheme)
        assert result.plaintext == plaintext
        assert result.outcome == DecodeOutcome.CIPHER

    assert db.get(TwitterAccount, empty.id).password_scheme is None

def test_reencrypt_is_idempotent(db, cipher, org):
    _seed_legacy_rows(db, org.id)
    maintenance.reencrypt_accounts(db, cipher, organization_id=org.id)
    again = maintenance.reencrypt_accounts(db, cipher, organization_id=org.id)
    assert again["migrated"] == 0
    assert again["ambiguous"] == []

def test_reencrypt_is_scoped_to_org(db, cipher, org, other_org):
    _seed_legacy_rows(db, other_org.id)
    stats = maintenance.reencrypt_accounts(db, cipher, organization_id=org.id)
    assert stats["migrated"] == 0
    assert db.query(TwitterAccount).filter(TwitterAccount.password_scheme == SCHEME_AESGCM).count() == 0

def test_reencrypt_counts_failed_commits(db, cipher, org):
    db.add(TwitterAccount(organization_id=org.id, username="legacy", encrypted_password=obfuscate("pw")))
    db.commit()

    with patch.object(db, "commit", side_effect=OperationalError("UPDATE", {}, Exception("disk full"))):
        stats = maintenance.reencrypt_accounts(db, cipher, organization_id=org.id, platforms=("twitter",))

    assert stats["errors"] == 1
    assert stats["migrated"] == 0

def test_reset_passwords(db, cipher, org):
    accounts.create_account(db, cipher, org.id, "twitter", {"username": "Alice"})
    accounts.create_account(db, cipher, org.id, "twitter", {"username": "bob"})
    accounts.create_account(db, cipher, org.id, "twitter", {"username": "carol"})

    stats = maintenance.reset_passwords(
        db, cipher, "twitter",
        {"@alice": "fresh-pass", "BOB": "broken\ufffd"},
        organization_id=org.id,
    )

    assert stats == {"updated": 1, "not_found": 2, "errors": 0}
    listed = {a["username"]: a for a in accounts.list_accounts(db, cipher, org.id, "twitter")}
    assert listed["Alice"]["password"] == "fresh-pass"
    assert listed["Alice"]["password_scheme"] == SCHEME_AESGCM
    assert listed["bob"]["password"] == ""

def test_reset_passwords_by_email(db, cipher, org):
    accounts.create_account(db, cipher, org.id, "gmail", {"email": "VA@gmail.com"})
    stats = maintenance.reset_passwords(db, cipher, "gmail", {"va@gmail.com": "mail"}, organization_id=org.id)
    assert stats["updated"] == 1

def test_import_warmup_snapshot(db, store, org):
    warmup.upsert_progress(db, org.id, "ahead", current_day=9)
    warmup.upsert_progress(db, org.id, "behind", current_day=2)

    snapshot = {
        "@newbie": {"currentDay": 3, "completed": False, "startDate": "2026-01-05T10:00:00Z"},
        "ahead": {"currentDay": 4},
        "behind": {"currentDay": 5},
        "broken": {"currentDay": "abc"},
    }
    result = maintenance.import_warmup_snapshot(db, org.id, snapshot, store=store)

    assert result["total"] == 4
    assert result["migrated"] == 1
    assert result["updated"] == 1
    assert result["skipped"] == 1
    assert result["errors"] == 1

    newbie = warmup.get_progress(db, org.id, "newbie")
    assert newbie.current_day == 3
    assert newbie.started_at.replace(tzinfo=timezone.utc) == datetime(2026, 1, 5, 10, tzinfo=timezone.utc)
    assert warmup.get_progress(db, org.id, "ahead").current_day == 9
    assert warmup.get_progress(db, org.id, "behind").current_day == 5

    # Errors keep the migration open for another run
    assert store.get(maintenance.WARMUP_MIGRATION_COMPLETE_KEY) is None

def test_import_warmup_dry_run_writes_nothing(db, store, org):
    result = maintenance.import_warmup_snapshot(db, org.id, {"newbie": {"currentDay": 2}}, dry_run=True, store=store)
    assert result["details"] == [{"username": "newbie", "action": "dry-run"}]
    assert warmup.list_progress(db, org.id) == []
    assert store.get(maintenance.WARMUP_MIGRATION_COMPLETE_KEY) is None

def test_import_warmup_runs_once(db, store, org):
    maintenance.import_warmup_snapshot(db, org.id, {"newbie": {"currentDay": 2}}, store=store)
    assert store.get(maintenance.WARMUP_MIGRATION_COMPLETE_KEY)

    second = maintenance.import_warmup_snapshot(db, org.id, {"other": {"currentDay": 2}}, store=store)
    assert second["status"] == "skipped"
    assert warmup.get_progress(db, org.id, "other") is None

    forced = maintenance.import_warmup_snapshot(db, org.id, {"other": {"currentDay": 2}}, store=store, force=True)
    assert forced["migrated"] == 1
