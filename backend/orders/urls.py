from django.urls import path
from . import views

urlpatterns = [
    path('orders/', views.order_list_create, name='order-list-create'),
    path('orders/stats/', views.order_stats, name='order-stats'),
    path('orders/calendar/', views.order_calendar, name='order-calendar'),
    path('orders/<int:pk>/', views.order_detail, name='order-detail'),
    path('orders/<int:pk>/transition/', views.order_transition, name='order-transition'),
    path('orders/<int:pk>/reschedule/', views.order_reschedule, name='order-reschedule'),
    path('orders/<int:pk>/fragments/', views.order_fragments, name='order-fragments'),
    path('orders/<int:pk>/fragments/<int:number>/', views.order_fragment_detail, name='order-fragment-detail'),
]
