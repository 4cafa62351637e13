import pytest

from fakes import location_payload
from models.enums import ReportStatus
from services.errors import InvalidTransition, PermissionDenied, ReportNotFound
from services.firebase_client import USERS, REPORTS, USER_REWARDS
from services.ledger import PointsLedger, build_full_address, can_transition
from services.live_feed import CollectionWatch


@pytest.fixture
def ledger(fake_db):
    return PointsLedger(fake_db)


def points(fake_db, uid):
    return fake_db.data(USERS, uid)["points"]


# -------------------- Helpers -------------------- #
def test_build_full_address_order():
    assert build_full_address("DAGO", "COBLONG", "KOTA BANDUNG", "JAWA BARAT") == \
        "DAGO, COBLONG, KOTA BANDUNG, JAWA BARAT"


def test_only_pending_reports_can_move():
    assert can_transition(ReportStatus.PENDING, ReportStatus.RESOLVED)
    assert can_transition(ReportStatus.PENDING, ReportStatus.REJECTED)
    assert not can_transition(ReportStatus.RESOLVED, ReportStatus.RESOLVED)
    assert not can_transition(ReportStatus.REJECTED, ReportStatus.PENDING)
    assert not can_transition(ReportStatus.PENDING, ReportStatus.PENDING)


# -------------------- Crear -------------------- #
def test_create_report_awards_points_and_starts_pending(ledger, fake_db, seed_user):
    user = seed_user("u1")

    report = ledger.create_report(user, "Sampah menumpuk di selokan", location_payload())

    assert report["status"] == "pending"
    assert report["user_id"] == "u1"
    assert fake_db.data(REPORTS, report["id"])["description"] == "Sampah menumpuk di selokan"
    assert points(fake_db, "u1") == 10
    # Reporte y puntos en un solo commit
    assert len(fake_db.commits) == 1


def test_create_report_fills_missing_full_address(ledger, fake_db, seed_user):
    user = seed_user("u1")

    report = ledger.create_report(user, "Botol plastik", location_payload())

    stored = fake_db.data(REPORTS, report["id"])["location"]
    assert stored["full_address"] == "DAGO, COBLONG, KOTA BANDUNG, JAWA BARAT"
    assert stored["latitude"] == -6.9175
    assert stored["village"] == "DAGO"


def test_report_reads_back_unchanged_through_snapshot(ledger, fake_db, seed_user):
    user = seed_user("u1")
    watch = CollectionWatch(REPORTS, fake_db.collection(REPORTS)).start()
    location = location_payload(full_address="Jl. Ir. H. Juanda No. 1, Dago")

    report = ledger.create_report(user, "Tumpukan sampah plastik\ndekat halte", location)

    [item] = watch.items()
    watch.stop()
    assert item["id"] == report["id"]
    assert item["description"] == "Tumpukan sampah plastik\ndekat halte"
    assert item["location"] == location


def test_create_report_keeps_given_full_address(ledger, fake_db, seed_user):
    user = seed_user("u1")

    report = ledger.create_report(user, "Botol plastik", location_payload(full_address="Jl. Dago 1"))

    assert fake_db.data(REPORTS, report["id"])["location"]["full_address"] == "Jl. Dago 1"


def test_unauthenticated_calls_write_nothing(ledger, fake_db, seed_reward):
    seed_reward("r1")

    assert ledger.create_report(None, "x", location_payload()) is None
    assert ledger.update_report_status(None, "any", ReportStatus.RESOLVED) is False
    assert ledger.cancel_report(None, "any", "u1") is False
    assert ledger.redeem_reward(None, "r1") is False
    assert fake_db.write_count == 0


# -------------------- Cancelar -------------------- #
def test_create_then_cancel_nets_zero(ledger, fake_db, seed_user):
    user = seed_user("u1", points=3)
    report = ledger.create_report(user, "Kasur bekas", location_payload())

    assert ledger.cancel_report(user, report["id"], "u1") is True

    assert fake_db.data(REPORTS, report["id"]) is None
    assert points(fake_db, "u1") == 3


def test_cancel_with_mismatched_caller_is_noop(ledger, fake_db, seed_user):
    user = seed_user("u1")
    report = ledger.create_report(user, "Kasur bekas", location_payload())
    writes = fake_db.write_count

    assert ledger.cancel_report(user, report["id"], "someone-else") is False
    assert fake_db.write_count == writes
    assert fake_db.data(REPORTS, report["id"]) is not None


def test_cancel_someone_elses_report_is_denied(ledger, fake_db, seed_user):
    owner = seed_user("owner")
    intruder = seed_user("intruder")
    report = ledger.create_report(owner, "Kasur bekas", location_payload())

    with pytest.raises(PermissionDenied):
        ledger.cancel_report(intruder, report["id"], "intruder")

    assert fake_db.data(REPORTS, report["id"]) is not None
    assert points(fake_db, "owner") == 10


def test_cancel_reviewed_report_is_rejected(ledger, fake_db, seed_user):
    user = seed_user("u1")
    admin = seed_user("admin", role="admin")
    report = ledger.create_report(user, "Kasur bekas", location_payload())
    ledger.update_report_status(admin, report["id"], ReportStatus.RESOLVED)

    with pytest.raises(InvalidTransition):
        ledger.cancel_report(user, report["id"], "u1")

    assert points(fake_db, "u1") == 25


def test_cancel_missing_report(ledger, seed_user):
    user = seed_user("u1")

    with pytest.raises(ReportNotFound):
        ledger.cancel_report(user, "nope", "u1")


# -------------------- Cambio de estado -------------------- #
def test_non_admin_cannot_change_status(ledger, fake_db, seed_user):
    user = seed_user("u1")
    report = ledger.create_report(user, "Puing bangunan", location_payload())
    writes = fake_db.write_count

    with pytest.raises(PermissionDenied):
        ledger.update_report_status(user, report["id"], ReportStatus.RESOLVED)

    assert fake_db.write_count == writes
    assert fake_db.data(REPORTS, report["id"])["status"] == "pending"


def test_resolving_awards_owner(ledger, fake_db, seed_user):
    user = seed_user("u1")
    admin = seed_user("admin", role="admin", points=7)
    report = ledger.create_report(user, "Puing bangunan", location_payload())

    assert ledger.update_report_status(admin, report["id"], ReportStatus.RESOLVED) is True

    stored = fake_db.data(REPORTS, report["id"])
    assert stored["status"] == "resolved"
    assert stored["updated_at"] is not None
    assert points(fake_db, "u1") == 25
    assert points(fake_db, "admin") == 7


def test_resolving_admin_owned_report_awards_nothing(ledger, fake_db, seed_user):
    admin = seed_user("admin", role="admin")
    report = ledger.create_report(admin, "Puing bangunan", location_payload())

    ledger.update_report_status(admin, report["id"], ReportStatus.RESOLVED)

    assert points(fake_db, "admin") == 10


def test_rejecting_awards_nothing(ledger, fake_db, seed_user):
    user = seed_user("u1")
    admin = seed_user("admin", role="admin")
    report = ledger.create_report(user, "Foto buram", location_payload())

    assert ledger.update_report_status(admin, report["id"], "rejected") is True

    assert fake_db.data(REPORTS, report["id"])["status"] == "rejected"
    assert points(fake_db, "u1") == 10


def test_resolving_twice_does_not_double_award(ledger, fake_db, seed_user):
    user = seed_user("u1")
    admin = seed_user("admin", role="admin")
    report = ledger.create_report(user, "Puing bangunan", location_payload())
    ledger.update_report_status(admin, report["id"], ReportStatus.RESOLVED)

    with pytest.raises(InvalidTransition):
        ledger.update_report_status(admin, report["id"], ReportStatus.RESOLVED)

    assert points(fake_db, "u1") == 25


def test_status_change_on_missing_report(ledger, seed_user):
    admin = seed_user("admin", role="admin")

    with pytest.raises(ReportNotFound):
        ledger.update_report_status(admin, "nope", ReportStatus.REJECTED)


# -------------------- Canje -------------------- #
def test_redeem_with_insufficient_balance(ledger, fake_db, seed_user, seed_reward):
    user = seed_user("u1", points=19)
    seed_reward("r1", points_required=20)

    assert ledger.redeem_reward(user, "r1") is False

    assert fake_db.write_count == 0
    assert fake_db.all(USER_REWARDS) == {}


def test_redeem_deducts_cost_and_records_redemption(ledger, fake_db, seed_user, seed_reward):
    user = seed_user("u1", points=30)
    seed_reward("r1", points_required=20, name="Tote bag")

    assert ledger.redeem_reward(user, "r1") is True

    assert points(fake_db, "u1") == 10
    [redemption] = fake_db.all(USER_REWARDS).values()
    assert redemption["user_id"] == "u1"
    assert redemption["reward_id"] == "r1"
    assert redemption["points_redeemed"] == 20
    assert redemption["reward_item"] == "Tote bag"
    assert len(fake_db.commits) == 1


def test_redeem_missing_reward(ledger, fake_db, seed_user):
    user = seed_user("u1", points=100)

    assert ledger.redeem_reward(user, "nope") is False
    assert fake_db.write_count == 0


def test_full_points_lifecycle(ledger, fake_db, seed_user, seed_reward):
    user = seed_user("u1")
    admin = seed_user("admin", role="admin")
    seed_reward("r1", points_required=20)

    report = ledger.create_report(user, "Sampah liar", location_payload())
    assert points(fake_db, "u1") == 10

    ledger.update_report_status(admin, report["id"], ReportStatus.RESOLVED)
    assert points(fake_db, "u1") == 25

    assert ledger.redeem_reward(user, "r1") is True
    assert points(fake_db, "u1") == 5

    assert ledger.redeem_reward(user, "r1") is False
    assert points(fake_db, "u1") == 5
    assert len(fake_db.all(USER_REWARDS)) == 1


def test_redemptions_are_never_updated(ledger, fake_db, seed_user, seed_reward):
    user = seed_user("u1", points=100)
    seed_reward("r1", points_required=20)
    ledger.redeem_reward(user, "r1")
    ledger.redeem_reward(user, "r1")

    kinds = [
        kind
        for ops in fake_db.commits
        for kind, reference, _ in ops
        if reference.collection_name == USER_REWARDS
    ]
    assert kinds == ["set", "set"]
