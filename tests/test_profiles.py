# tests/test_profiles.py
import pytest

from healthconnect import crud, models, schemas, transitions
from healthconnect.config import get_settings


def test_bootstrap_email_gets_admin_role(db, admin):
    assert admin.is_admin
    assert crud.get_profile(db, admin.user_id).role == models.UserRole.admin


def test_everyone_else_is_a_user(db, owner):
    profile = crud.get_profile(db, owner.user_id)
    assert profile.role == models.UserRole.user
    assert profile.full_name == "Olivia Owner"
    assert not owner.is_admin


def test_bootstrap_match_ignores_case_and_whitespace():
    settings = get_settings()
    assert settings.is_bootstrap_admin("  Admin@Mail.com ")
    assert not settings.is_bootstrap_admin("owner@mail.com")
    assert not settings.is_bootstrap_admin("")


def test_duplicate_email_is_rejected(db, owner):
    with pytest.raises(crud.ValidationError):
        crud.register_identity(db, email="OWNER@mail.com", password="secret123")


def test_profile_update_keeps_role(db, owner):
    updated = crud.update_profile(db, owner, schemas.ProfileUpdate(full_name="Olivia O."))
    assert updated.full_name == "Olivia O."
    assert updated.role == models.UserRole.user


def test_actor_without_profile_defaults_to_user(db):
    assert crud.actor_for(db, "no-such-user").role == models.UserRole.user


def test_authenticate(db, owner):
    assert crud.authenticate(db, "owner@mail.com", "secret123").id == owner.user_id
    assert crud.authenticate(db, "owner@mail.com", "wrong-password1") is None
    assert crud.authenticate(db, "nobody@mail.com", "secret123") is None


def test_deleting_identity_cascades(db, owner, admin, consultation):
    transitions.admin_set_status(db, admin, consultation.id, models.ConsultationStatus.approved)

    assert crud.delete_identity(db, owner.user_id) is True

    db.expire_all()
    assert crud.get_profile(db, owner.user_id) is None
    assert db.query(models.Consultation).count() == 0
    assert db.query(models.Notification).count() == 0
    assert crud.delete_identity(db, owner.user_id) is False
