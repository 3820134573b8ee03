from rest_framework import generics, permissions, serializers, status, views
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from wallets.models import Wallet

from .engine import get_active_round
from .errors import (
    ExposureLimitExceededError,
    InsufficientBalanceError,
    InvalidStateError,
    ValidationError,
)
from .models import RollRound, RollSettings
from .provably_fair import verify_round
from .serializers import (
    RollRoundSerializer,
    SeedCommitmentSerializer,
    sanitize_bet,
    sanitize_bets,
    sanitize_round,
)
from .services import admit_bet


class VerifyRoundIn(serializers.Serializer):
    server_seed = serializers.CharField(max_length=128)
    round_id = serializers.IntegerField(min_value=1)
    outcome = serializers.IntegerField(min_value=0)


class CurrentRoundView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        round_obj = get_active_round()
        if not round_obj:
            return Response({"round": None, "commitment": None, "bets": []})

        bets = round_obj.bets.select_related("user").all()
        return Response({
            "round": sanitize_round(round_obj),
            "commitment": SeedCommitmentSerializer(round_obj.seed).data,
            "bets": sanitize_bets(bets),
        })


class RecentRoundsView(generics.ListAPIView):
    serializer_class = RollRoundSerializer
    permission_classes = [permissions.AllowAny]
    pagination_class = None

    def get_queryset(self):
        return (
            RollRound.objects.filter(state=RollRound.RESOLVED)
            .select_related("seed")
            .order_by("-id")[:50]
        )


class VerifyRoundView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = VerifyRoundIn(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        ok = verify_round(
            data["server_seed"],
            data["round_id"],
            data["outcome"],
            RollSettings.get().house_edge,
        )
        return Response({"valid": ok})


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def place_bet(request):
    """
    Admit a bet on the open round. Rejections come back with their message.
    """
    try:
        bet = admit_bet(request.user.id, request.data)
    except (ValidationError, InsufficientBalanceError, ExposureLimitExceededError) as e:
        return Response({"success": False, "error": e.message}, status=status.HTTP_400_BAD_REQUEST)
    except InvalidStateError as e:
        return Response({"success": False, "error": e.message}, status=status.HTTP_409_CONFLICT)

    balance = Wallet.objects.values_list("balance", flat=True).get(user_id=request.user.id)
    return Response(
        {"success": True, "bet": sanitize_bet(bet), "balance": balance},
        status=status.HTTP_201_CREATED,
    )
