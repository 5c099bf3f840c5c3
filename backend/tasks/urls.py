from django.urls import path
from .views import (
    insight_view,
    list_create_view,
    overdue_list_view,
    prioritization_view,
    pulse_view,
    retrieve_update_destroy_view,
)

urlpatterns = [
    # GET and POST (List tasks and create a personal task)
    path('', list_create_view, name="task-list-create"),

    path('overdue/', overdue_list_view, name="task-overdue"),
    path('pulse/', pulse_view, name="task-pulse"),
    path('prioritization/', prioritization_view, name="task-prioritization"),
    path('insight/', insight_view, name="task-insight"),

    # GET, PATCH, DELETE (Detail and toggles)
    path('<int:pk>/', retrieve_update_destroy_view, name="task-detail"),
]
