from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import RollBet, RollRound, RollSeed

User = get_user_model()


class PublicUserSerializer(serializers.ModelSerializer):
    rakeback = serializers.CharField(source="rakeback_name", read_only=True)
    created_at = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "avatar",
            "rank",
            "level",
            "rakeback",
            "stats",
            "created_at",
        ]


class SeedCommitmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = RollSeed
        fields = ["id", "hash"]


class RevealedSeedSerializer(serializers.ModelSerializer):
    class Meta:
        model = RollSeed
        fields = ["id", "server_seed", "hash"]


class RollRoundSerializer(serializers.ModelSerializer):
    fair = serializers.SerializerMethodField()

    class Meta:
        model = RollRound
        fields = [
            "id",
            "state",
            "outcome",
            "fair",
            "created_at",
        ]

    def get_fair(self, obj):
        if not obj.is_revealed:
            return None
        return {"seed": RevealedSeedSerializer(obj.seed).data}

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not instance.is_revealed:
            # Outcome and seed stay hidden until the round starts rolling
            data.pop("outcome", None)
            data.pop("fair", None)
        return data


class RollBetSerializer(serializers.ModelSerializer):
    user = PublicUserSerializer(read_only=True)

    class Meta:
        model = RollBet
        fields = [
            "id",
            "round",
            "user",
            "amount",
            "multiplier",
            "created_at",
        ]


def sanitize_round(round_obj) -> dict:
    return dict(RollRoundSerializer(round_obj).data)


def sanitize_bet(bet) -> dict:
    return dict(RollBetSerializer(bet).data)


def sanitize_bets(bets) -> list:
    return [dict(row) for row in RollBetSerializer(bets, many=True).data]
