"""Tests for the share registry (crud.share)."""

import threading
from datetime import datetime, timedelta

import pytest

from cloudimega import crud
from cloudimega.core.errors import Internal, InvalidArgument, NotFound
from cloudimega.db.session import SessionLocal
from cloudimega.models import Share
from cloudimega.schemas import ShareCreate, ShareUpdate


def _reload(db, share_id):
    db.expire_all()
    return db.query(Share).filter(Share.id == share_id).first()


class TestCreateShare:
    def test_file_share_has_only_file_target(self, make_share, shared_file):
        share = make_share(file_id=shared_file.id)

        assert share.file_id == shared_file.id
        assert share.folder_id is None
        assert share.target_type == "file"
        assert share.download_count == 0
        assert share.is_active is True
        assert share.permission == "view"

    def test_folder_share_has_only_folder_target(self, make_share, shared_folder):
        share = make_share(folder_id=shared_folder.id)

        assert share.folder_id == shared_folder.id
        assert share.file_id is None
        assert share.target_type == "folder"

    def test_both_targets_rejected(self, make_share, shared_file, shared_folder):
        with pytest.raises(InvalidArgument):
            make_share(file_id=shared_file.id, folder_id=shared_folder.id)

    def test_no_target_rejected(self, make_share):
        with pytest.raises(InvalidArgument):
            make_share()

    def test_someone_elses_file_is_not_found(self, db, store, other_user, make_share):
        theirs = crud.file.create_file(db, store=store, user_id=other_user.id, name="x.txt", data=b"x")
        with pytest.raises(NotFound):
            make_share(file_id=theirs.id)

    def test_folder_id_passed_as_file_is_not_found(self, make_share, shared_folder):
        with pytest.raises(NotFound):
            make_share(file_id=shared_folder.id)

    def test_soft_deleted_target_is_not_found(self, db, make_share, shared_file):
        crud.file.remove(db, id=shared_file.id)
        with pytest.raises(NotFound):
            make_share(file_id=shared_file.id)

    def test_password_is_stored_hashed(self, make_share, shared_file):
        share = make_share(file_id=shared_file.id, password="abc")

        assert share.password_hash
        assert share.password_hash != "abc"

    def test_empty_password_means_no_protection(self, make_share, shared_file):
        share = make_share(file_id=shared_file.id, password="")
        assert share.password_hash is None

    def test_zero_max_downloads_means_unlimited(self, make_share, shared_file):
        share = make_share(file_id=shared_file.id, max_downloads=0)
        assert share.max_downloads is None

    def test_tokens_are_unique(self, make_share, shared_file):
        tokens = {make_share(file_id=shared_file.id).token for _ in range(5)}
        assert len(tokens) == 5

    def test_token_collision_is_retried(self, monkeypatch, make_share, shared_file):
        existing = make_share(file_id=shared_file.id)
        tokens = iter([existing.token, existing.token, "f" * 32])
        monkeypatch.setattr("cloudimega.crud.crud_share.generate_share_token", lambda: next(tokens))

        share = make_share(file_id=shared_file.id)

        assert share.token == "f" * 32

    def test_persistent_collision_fails_internally(self, monkeypatch, make_share, shared_file):
        taken = make_share(file_id=shared_file.id).token
        monkeypatch.setattr("cloudimega.crud.crud_share.generate_share_token", lambda: taken)

        with pytest.raises(Internal):
            make_share(file_id=shared_file.id)


class TestUpdateShare:
    def test_only_sent_fields_change(self, db, owner, make_share, shared_file):
        expires = datetime.utcnow() + timedelta(days=3)
        share = make_share(file_id=shared_file.id, password="abc", expires_at=expires, max_downloads=5)
        old_hash = share.password_hash

        updated = crud.share.update_policy(
            db, share_id=share.id, owner_id=owner.id, obj_in=ShareUpdate(permission="download")
        )

        assert updated.permission == "download"
        assert updated.password_hash == old_hash
        assert updated.expires_at == expires
        assert updated.max_downloads == 5

    def test_empty_password_clears_protection(self, db, owner, make_share, shared_file):
        share = make_share(file_id=shared_file.id, password="abc")

        updated = crud.share.update_policy(
            db, share_id=share.id, owner_id=owner.id, obj_in=ShareUpdate(password="")
        )

        assert updated.password_hash is None

    def test_new_password_replaces_hash(self, db, owner, make_share, shared_file):
        share = make_share(file_id=shared_file.id, password="abc")

        updated = crud.share.update_policy(
            db, share_id=share.id, owner_id=owner.id, obj_in=ShareUpdate(password="xyz")
        )

        assert crud.share.verify_password(db, share=updated, password="xyz")
        assert not crud.share.verify_password(db, share=updated, password="abc")

    def test_explicit_null_clears_expiry_and_limit(self, db, owner, make_share, shared_file):
        share = make_share(
            file_id=shared_file.id, expires_at=datetime.utcnow() + timedelta(days=1), max_downloads=3
        )

        updated = crud.share.update_policy(
            db, share_id=share.id, owner_id=owner.id,
            obj_in=ShareUpdate(expires_at=None, max_downloads=None),
        )

        assert updated.expires_at is None
        assert updated.max_downloads is None

    def test_null_permission_rejected(self, db, owner, make_share, shared_file):
        share = make_share(file_id=shared_file.id)
        with pytest.raises(InvalidArgument):
            crud.share.update_policy(
                db, share_id=share.id, owner_id=owner.id, obj_in=ShareUpdate(permission=None)
            )

    def test_foreign_share_is_not_found(self, db, other_user, make_share, shared_file):
        share = make_share(file_id=shared_file.id)
        with pytest.raises(NotFound):
            crud.share.update_policy(
                db, share_id=share.id, owner_id=other_user.id, obj_in=ShareUpdate(is_active=False)
            )
        assert _reload(db, share.id).is_active is True

    def test_expired_share_can_still_be_updated(self, db, owner, make_share, shared_file):
        share = make_share(file_id=shared_file.id, expires_at=datetime.utcnow() - timedelta(days=1))
        new_expiry = datetime.utcnow() + timedelta(days=1)

        updated = crud.share.update_policy(
            db, share_id=share.id, owner_id=owner.id, obj_in=ShareUpdate(expires_at=new_expiry)
        )

        assert updated.expires_at == new_expiry


class TestRevokeShare:
    def test_revoke_deletes_record(self, db, owner, make_share, shared_file):
        share = make_share(file_id=shared_file.id)
        token = share.token

        crud.share.revoke(db, share_id=share.id, owner_id=owner.id)

        assert crud.share.get_by_token(db, token=token) is None

    def test_second_revoke_is_not_found(self, db, owner, make_share, shared_file):
        share_id = make_share(file_id=shared_file.id).id
        crud.share.revoke(db, share_id=share_id, owner_id=owner.id)

        with pytest.raises(NotFound):
            crud.share.revoke(db, share_id=share_id, owner_id=owner.id)

    def test_foreign_revoke_is_not_found(self, db, other_user, make_share, shared_file):
        share = make_share(file_id=shared_file.id)
        with pytest.raises(NotFound):
            crud.share.revoke(db, share_id=share.id, owner_id=other_user.id)
        assert _reload(db, share.id) is not None


class TestListShares:
    def test_newest_first_and_active_only(self, db, owner, make_share, shared_file, shared_folder):
        first = make_share(file_id=shared_file.id)
        second = make_share(folder_id=shared_folder.id)
        disabled = make_share(file_id=shared_file.id)
        crud.share.update_policy(
            db, share_id=disabled.id, owner_id=owner.id, obj_in=ShareUpdate(is_active=False)
        )

        shares = crud.share.get_multi_by_owner(db, owner_id=owner.id)

        assert [s.id for s in shares] == [second.id, first.id]

    def test_filter_by_file(self, db, owner, make_share, shared_file, shared_folder):
        file_share = make_share(file_id=shared_file.id)
        make_share(folder_id=shared_folder.id)

        shares = crud.share.get_multi_by_owner(db, owner_id=owner.id, file_id=shared_file.id)

        assert [s.id for s in shares] == [file_share.id]

    def test_other_owners_see_nothing(self, db, other_user, make_share, shared_file):
        make_share(file_id=shared_file.id)
        assert crud.share.get_multi_by_owner(db, owner_id=other_user.id) == []


class TestResolveForPublicAccess:
    def test_unknown_token(self, db):
        with pytest.raises(NotFound):
            crud.share.resolve_for_public_access(db, token="0" * 32)

    def test_inert_shares_still_resolve(self, db, make_share, shared_file):
        share = make_share(file_id=shared_file.id, expires_at=datetime.utcnow() - timedelta(days=1))
        assert crud.share.resolve_for_public_access(db, token=share.token).id == share.id


class TestVerifyPassword:
    def test_unprotected_share_accepts_anything(self, db, make_share, shared_file):
        share = make_share(file_id=shared_file.id)

        assert crud.share.verify_password(db, share=share, password=None)
        assert crud.share.verify_password(db, share=share, password="")
        assert crud.share.verify_password(db, share=share, password="whatever")

    def test_wrong_password_rejected_without_touching(self, db, make_share, shared_file):
        share = make_share(file_id=shared_file.id, password="abc")

        assert not crud.share.verify_password(db, share=share, password="abd")
        assert not crud.share.verify_password(db, share=share, password="")
        assert not crud.share.verify_password(db, share=share, password=None)
        assert _reload(db, share.id).last_accessed_at is None

    def test_correct_password_updates_last_access(self, db, make_share, shared_file):
        share = make_share(file_id=shared_file.id, password="abc")

        assert crud.share.verify_password(db, share=share, password="abc")
        assert _reload(db, share.id).last_accessed_at is not None


class TestRecordDownload:
    def test_increments_and_touches(self, db, make_share, shared_file):
        share = make_share(file_id=shared_file.id)

        assert crud.share.record_download(db, share_id=share.id)

        reloaded = _reload(db, share.id)
        assert reloaded.download_count == 1
        assert reloaded.last_accessed_at is not None

    def test_stops_at_limit(self, db, make_share, shared_file):
        share = make_share(file_id=shared_file.id, max_downloads=2)

        assert crud.share.record_download(db, share_id=share.id)
        assert crud.share.record_download(db, share_id=share.id)
        assert not crud.share.record_download(db, share_id=share.id)
        assert _reload(db, share.id).download_count == 2

    def test_refuses_inactive_or_expired(self, db, owner, make_share, shared_file):
        expired = make_share(file_id=shared_file.id, expires_at=datetime.utcnow() - timedelta(minutes=1))
        inactive = make_share(file_id=shared_file.id)
        crud.share.update_policy(
            db, share_id=inactive.id, owner_id=owner.id, obj_in=ShareUpdate(is_active=False)
        )

        assert not crud.share.record_download(db, share_id=expired.id)
        assert not crud.share.record_download(db, share_id=inactive.id)

    def test_concurrent_claims_cannot_exceed_limit(self, make_share, shared_file):
        share = make_share(file_id=shared_file.id, max_downloads=1)
        workers = 8
        barrier = threading.Barrier(workers)
        results = []
        lock = threading.Lock()

        def claim():
            session = SessionLocal()
            try:
                barrier.wait()
                won = crud.share.record_download(session, share_id=share.id)
            finally:
                session.close()
            with lock:
                results.append(won)

        threads = [threading.Thread(target=claim) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        session = SessionLocal()
        try:
            assert session.query(Share).filter(Share.id == share.id).one().download_count == 1
        finally:
            session.close()
