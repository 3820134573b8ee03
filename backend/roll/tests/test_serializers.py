import pytest

from roll.engine import create_round, resolve, start_rolling
from roll.models import RollRound
from roll.serializers import RollRoundSerializer, sanitize_bet, sanitize_bets, sanitize_round
from roll.services import admit_bet

pytestmark = pytest.mark.django_db

PUBLIC_USER_FIELDS = {"id", "username", "avatar", "rank", "level", "rakeback", "stats", "created_at"}


def test_open_round_hides_outcome_and_seed(roll_settings):
    round_obj = create_round()

    data = sanitize_round(round_obj)

    assert data["state"] == RollRound.OPEN
    assert "outcome" not in data
    assert "fair" not in data
    assert round_obj.seed.server_seed not in str(data)
    assert round_obj.seed.hash not in str(data)


def test_rolling_round_shows_outcome_and_seed(roll_settings):
    round_obj = create_round()
    start_rolling(round_obj)

    data = sanitize_round(round_obj)

    assert data["outcome"] == round_obj.outcome
    assert data["fair"]["seed"]["server_seed"] == round_obj.seed.server_seed


def test_resolved_round_reveals_everything(roll_settings):
    round_obj = create_round()
    resolve(round_obj)

    data = sanitize_round(RollRound.objects.get(pk=round_obj.pk))

    assert data["state"] == RollRound.RESOLVED
    assert data["outcome"] == round_obj.outcome
    assert data["fair"]["seed"] == {
        "id": round_obj.seed.pk,
        "server_seed": round_obj.seed.server_seed,
        "hash": round_obj.seed.hash,
    }


def test_sanitize_round_returns_a_copy(roll_settings):
    round_obj = create_round()
    data = sanitize_round(round_obj)
    data["state"] = "tampered"

    assert round_obj.state == RollRound.OPEN


def test_list_serialization_hides_per_round(roll_settings):
    resolved = create_round()
    resolve(resolved)
    opened = create_round()

    rows = RollRoundSerializer(RollRound.objects.order_by("id"), many=True).data

    assert rows[0]["id"] == resolved.pk and "outcome" in rows[0] and "fair" in rows[0]
    assert rows[1]["id"] == opened.pk and "outcome" not in rows[1] and "fair" not in rows[1]


def test_bets_only_expose_public_profile(make_user, roll_settings):
    create_round()
    user = make_user(
        "whale",
        balance=50_000,
        avatar="https://cdn.example.com/whale.png",
        rank="partner",
        level=12,
        rakeback="gold",
        stats={"bet": 10, "won": 4},
    )
    bet = admit_bet(user.id, {"amount": 1000, "multiplier": 300})

    [data] = sanitize_bets([bet])

    assert set(data["user"]) == PUBLIC_USER_FIELDS
    assert "balance" not in data
    assert "balance" not in data["user"]
    assert "password" not in data["user"] and "email" not in data["user"]
    assert data["user"]["rakeback"] == "Gold"
    assert data["user"]["stats"] == {"bet": 10, "won": 4}
    assert (data["amount"], data["multiplier"]) == (1000, 300)
    assert sanitize_bet(bet) == data


@pytest.mark.parametrize(
    "state,revealed",
    [(RollRound.OPEN, False), (RollRound.RESOLVING, True), (RollRound.RESOLVED, True)],
)
def test_round_is_revealed_once_rolling(state, revealed):
    assert RollRound(state=state).is_revealed is revealed
