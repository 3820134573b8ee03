from django.urls import path, include


urlpatterns = [
    # Roll game
    path('api/roll/', include('roll.urls')),
]
