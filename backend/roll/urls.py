from django.urls import path
from . import views

urlpatterns = [
    path("current/", views.CurrentRoundView.as_view(), name="roll-current"),
    path("history/", views.RecentRoundsView.as_view(), name="roll-history"),
    path("verify/", views.VerifyRoundView.as_view(), name="roll-verify"),
    path("place-bet/", views.place_bet, name="roll-place-bet"),
]
