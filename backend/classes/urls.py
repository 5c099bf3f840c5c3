from django.urls import path
from .views import (
    assignment_create_view,
    cohort_pulse_view,
    date_load_view,
    join_view,
    list_create_view,
)

urlpatterns = [
    path('', list_create_view, name='class-list-create'),
    path('join/', join_view, name='class-join'),
    path('<int:pk>/assignments/', assignment_create_view, name='class-assignments'),
    path('<int:pk>/pulse/', cohort_pulse_view, name='class-pulse'),
    path('<int:pk>/load/', date_load_view, name='class-date-load'),
]
