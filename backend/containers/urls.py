from django.urls import path
from .views import container_list, container_detail, container_receive, container_ship, container_move

urlpatterns = [
    path('containers/', container_list, name='container-list'),
    path('containers/receive/', container_receive, name='container-receive'),
    path('containers/<int:pk>/', container_detail, name='container-detail'),
    path('containers/<int:pk>/ship/', container_ship, name='container-ship'),
    path('containers/<int:pk>/move/', container_move, name='container-move'),
]
