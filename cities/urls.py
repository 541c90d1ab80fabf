# cities/urls.py

from django.urls import path
from . import views

urlpatterns = [
    path('', views.city_list, name='city-list'),
    path('search/', views.city_search, name='city-search'),
    path('wilayas/', views.wilaya_list, name='wilaya-list'),
    path('<int:city_id>/', views.city_detail, name='city-detail'),
]
