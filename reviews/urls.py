# reviews/urls.py

from django.urls import path
from . import views

urlpatterns = [
    path('', views.create_review, name='review-create'),
    path('mine/', views.my_reviews, name='my-reviews'),
    path('pending/', views.pending_reviews, name='pending-reviews'),
    path('listing/<int:listing_id>/', views.listing_reviews, name='listing-reviews'),
    path('host/', views.host_reviews, name='host-reviews'),
    path('user/<int:user_id>/', views.user_reviews, name='user-reviews'),
    path('<int:review_id>/', views.review_detail, name='review-detail'),
    path('<int:review_id>/respond/', views.respond_to_review, name='review-respond'),
    path('<int:review_id>/helpful/', views.mark_helpful, name='review-helpful'),
    path('<int:review_id>/flag/', views.flag_review, name='review-flag'),
    path('<int:review_id>/moderate/', views.moderate_review, name='review-moderate'),
]
