from __future__ import annotations

import asyncio

import pytest

from seatlocker.core.entities.identity import Identity, Profile
from seatlocker.core.errors import BackendError, NoIdentityError
from seatlocker.core.use_cases.identity_session import IdentitySessionManager, SessionState
from seatlocker.tests.fakes import FakeProfileRepository, drain


@pytest.mark.asyncio
async def test_sign_in_fetches_profile(profile_repo: FakeProfileRepository, alice: Identity) -> None:
    profile_repo.profiles[alice.external_id] = Profile(name="Alice Kim", email="alice@venue.example", phone="010")
    manager = IdentitySessionManager(profile_repo=profile_repo)

    manager.on_identity_changed(alice)
    assert manager.state is SessionState.AUTHENTICATED_NO_PROFILE
    assert manager.is_authenticated is True
    assert manager.get_profile() is None

    await manager.join()

    assert manager.state is SessionState.AUTHENTICATED_WITH_PROFILE
    assert manager.get_profile() == Profile(name="Alice Kim", email="alice@venue.example", phone="010")
    assert profile_repo.get_calls == [alice.external_id]


@pytest.mark.asyncio
async def test_derived_fields_prefer_profile_and_fall_back_to_identity(
        profile_repo: FakeProfileRepository, alice: Identity
) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo)
    gate = profile_repo.gate(alice.external_id)

    manager.on_identity_changed(alice)
    assert manager.display_name == "Alice (Google)"
    assert manager.contact_email == "alice@gmail.example"
    assert manager.phone is None
    assert manager.is_loading is True

    gate.set_result(Profile(name="Alice Kim", email=None, phone="010-1234"))
    await manager.join()

    assert manager.display_name == "Alice Kim"
    # profile has no email, so the provider's claim still shows
    assert manager.contact_email == "alice@gmail.example"
    assert manager.phone == "010-1234"
    assert manager.is_loading is False


@pytest.mark.asyncio
async def test_out_of_order_profile_results_keep_the_latest_identity(
        profile_repo: FakeProfileRepository, alice: Identity, bob: Identity
) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo)
    alice_gate = profile_repo.gate(alice.external_id)
    bob_gate = profile_repo.gate(bob.external_id)

    manager.on_identity_changed(alice)
    manager.on_identity_changed(bob)

    bob_gate.set_result(Profile(name="Bob Lee"))
    await drain()
    alice_gate.set_result(Profile(name="Alice Kim"))
    await manager.join()

    assert manager.get_identity() == bob
    assert manager.get_profile() == Profile(name="Bob Lee")
    assert manager.display_name == "Bob Lee"


@pytest.mark.asyncio
async def test_new_sign_in_hides_previous_profile_immediately(
        profile_repo: FakeProfileRepository, alice: Identity, bob: Identity
) -> None:
    profile_repo.profiles[alice.external_id] = Profile(name="Alice Kim")
    manager = IdentitySessionManager(profile_repo=profile_repo)
    manager.on_identity_changed(alice)
    await manager.join()

    bob_gate = profile_repo.gate(bob.external_id)
    manager.on_identity_changed(bob)

    assert manager.get_profile() is None
    assert manager.display_name == "Bob"
    bob_gate.set_result(Profile(name="Bob Lee"))
    await manager.join()


@pytest.mark.asyncio
async def test_sign_out_clears_profile_and_drops_in_flight_result(
        profile_repo: FakeProfileRepository, alice: Identity
) -> None:
    profile_repo.profiles[alice.external_id] = Profile(name="Alice Kim")
    manager = IdentitySessionManager(profile_repo=profile_repo)
    manager.on_identity_changed(alice)
    await manager.join()
    assert manager.state is SessionState.AUTHENTICATED_WITH_PROFILE

    gate = profile_repo.gate(alice.external_id)
    refresh = manager.refresh_profile()
    pending = asyncio.ensure_future(refresh)
    await drain()

    manager.on_identity_changed(None)
    assert manager.state is SessionState.UNAUTHENTICATED
    assert manager.get_identity() is None
    assert manager.get_profile() is None

    gate.set_result(Profile(name="Alice (stale)"))
    assert await pending is None

    assert manager.get_profile() is None
    assert manager.state is SessionState.UNAUTHENTICATED
    assert manager.display_name is None
    assert manager.is_authenticated is False


@pytest.mark.asyncio
async def test_profile_failure_keeps_identity(profile_repo: FakeProfileRepository, alice: Identity) -> None:
    profile_repo.failures[alice.external_id] = BackendError("profile service down")
    manager = IdentitySessionManager(profile_repo=profile_repo)

    manager.on_identity_changed(alice)
    await manager.join()

    assert manager.state is SessionState.PROFILE_ERROR
    assert manager.error == "profile service down"
    assert manager.get_profile() is None
    assert manager.get_identity() == alice
    assert manager.is_authenticated is True


@pytest.mark.asyncio
async def test_stale_failure_does_not_mark_new_identity_as_errored(
        profile_repo: FakeProfileRepository, alice: Identity, bob: Identity
) -> None:
    profile_repo.profiles[bob.external_id] = Profile(name="Bob Lee")
    manager = IdentitySessionManager(profile_repo=profile_repo)
    alice_gate = profile_repo.gate(alice.external_id)

    manager.on_identity_changed(alice)
    manager.on_identity_changed(bob)
    await drain()
    alice_gate.set_result(BackendError("late failure"))
    await manager.join()

    assert manager.state is SessionState.AUTHENTICATED_WITH_PROFILE
    assert manager.error is None


@pytest.mark.asyncio
async def test_resolving_signal_is_authenticating(profile_repo: FakeProfileRepository, alice: Identity) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo)

    manager.on_identity_changed(None, resolving=True)

    assert manager.state is SessionState.AUTHENTICATING
    assert manager.is_authenticated is False
    assert manager.is_loading is True
    assert profile_repo.get_calls == []

    manager.on_identity_changed(alice)
    await manager.join()
    assert manager.state is SessionState.AUTHENTICATED_WITH_PROFILE


@pytest.mark.asyncio
async def test_same_identity_re_emitted_does_not_refetch(profile_repo: FakeProfileRepository, alice: Identity) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo)
    manager.on_identity_changed(alice)
    await manager.join()

    manager.on_identity_changed(Identity(external_id=alice.external_id, display_name="Alice K."))
    await manager.join()

    assert profile_repo.get_calls == [alice.external_id]
    assert manager.state is SessionState.AUTHENTICATED_WITH_PROFILE


@pytest.mark.asyncio
async def test_refresh_profile_requires_identity(profile_repo: FakeProfileRepository) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo)

    with pytest.raises(NoIdentityError):
        await manager.refresh_profile()


@pytest.mark.asyncio
async def test_refresh_profile_fetches_again(profile_repo: FakeProfileRepository, alice: Identity) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo, auto_fetch=False)
    manager.on_identity_changed(alice)
    assert profile_repo.get_calls == []

    profile_repo.profiles[alice.external_id] = Profile(name="Alice Kim")
    profile = await manager.refresh_profile()

    assert profile == Profile(name="Alice Kim")
    assert manager.state is SessionState.AUTHENTICATED_WITH_PROFILE


@pytest.mark.asyncio
async def test_refresh_profile_surfaces_backend_error(profile_repo: FakeProfileRepository, alice: Identity) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo, auto_fetch=False)
    manager.on_identity_changed(alice)
    profile_repo.failures[alice.external_id] = BackendError("timeout")

    with pytest.raises(BackendError):
        await manager.refresh_profile()

    assert manager.state is SessionState.PROFILE_ERROR
    assert manager.get_identity() == alice


@pytest.mark.asyncio
async def test_update_profile_writes_through_then_refetches(
        profile_repo: FakeProfileRepository, alice: Identity
) -> None:
    profile_repo.profiles[alice.external_id] = Profile(name="Alice Kim", email="a@venue.example")
    manager = IdentitySessionManager(profile_repo=profile_repo)
    manager.on_identity_changed(alice)
    await manager.join()

    profile = await manager.update_profile({"phone": "010-9999"})

    assert profile_repo.updates == [(alice.external_id, {"phone": "010-9999"})]
    assert profile == Profile(name="Alice Kim", email="a@venue.example", phone="010-9999")
    assert manager.get_profile() == profile
    assert profile_repo.get_calls == [alice.external_id, alice.external_id]


@pytest.mark.asyncio
async def test_update_profile_requires_identity(profile_repo: FakeProfileRepository) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo)

    with pytest.raises(NoIdentityError):
        await manager.update_profile({"name": "Nobody"})

    assert profile_repo.updates == []


@pytest.mark.asyncio
async def test_update_profile_failure_is_backend_error(profile_repo: FakeProfileRepository, alice: Identity) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo, auto_fetch=False)
    manager.on_identity_changed(alice)
    profile_repo.failures[alice.external_id] = BackendError("write rejected")

    with pytest.raises(BackendError):
        await manager.update_profile({"name": "Alice"})

    assert manager.state is SessionState.PROFILE_ERROR
    assert manager.error == "write rejected"
    assert manager.is_authenticated is True


@pytest.mark.asyncio
async def test_snapshot_reflects_current_view(profile_repo: FakeProfileRepository, alice: Identity) -> None:
    profile_repo.profiles[alice.external_id] = Profile(name="Alice Kim", phone="010")
    manager = IdentitySessionManager(profile_repo=profile_repo)
    manager.on_identity_changed(alice)
    await manager.join()

    snap = manager.snapshot()

    assert snap.user_id == alice.external_id
    assert snap.display_name == "Alice Kim"
    assert snap.contact_email == "alice@gmail.example"
    assert snap.phone == "010"
    assert snap.state is SessionState.AUTHENTICATED_WITH_PROFILE


@pytest.mark.asyncio
async def test_repeated_sign_in_switches_leave_no_pending_bookkeeping(
        profile_repo: FakeProfileRepository, alice: Identity, bob: Identity
) -> None:
    manager = IdentitySessionManager(profile_repo=profile_repo)

    for _ in range(10):
        manager.on_identity_changed(alice)
        manager.on_identity_changed(bob)
    await manager.join()

    assert manager.is_loading is False
    assert len(manager._pending) == 0

    gate = profile_repo.gate(bob.external_id)
    refresh = asyncio.ensure_future(manager.refresh_profile())
    await drain()
    assert manager.is_loading is True
    assert len(manager._pending) == 1

    gate.set_result(Profile(name="Bob Lee"))
    await refresh
    assert manager.is_loading is False
    assert len(manager._pending) == 0


@pytest.mark.asyncio
async def test_token_refresh_for_same_user_keeps_profile_state(
        profile_repo: FakeProfileRepository, alice: Identity
) -> None:
    profile_repo.profiles[alice.external_id] = Profile(name="Alice Kim")
    manager = IdentitySessionManager(profile_repo=profile_repo)
    manager.on_identity_changed(alice)
    await manager.join()

    manager.on_identity_changed(alice, resolving=True)
    assert manager.state is SessionState.AUTHENTICATING

    gate = profile_repo.gate(alice.external_id)
    manager.on_identity_changed(alice)

    assert manager.state is SessionState.AUTHENTICATED_WITH_PROFILE
    assert manager.get_profile() == Profile(name="Alice Kim")

    gate.set_result(Profile(name="Alice K."))
    await manager.join()
    assert manager.get_profile() == Profile(name="Alice K.")
