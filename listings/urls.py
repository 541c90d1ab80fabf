# listings/urls.py

from django.urls import path
from . import views

urlpatterns = [
    # Creation wizard (hosts)
    path('drafts/', views.drafts, name='listing-drafts'),
    path('drafts/<int:draft_id>/', views.draft_detail, name='listing-draft-detail'),
    path('drafts/<int:draft_id>/wizard/', views.wizard_state, name='listing-wizard'),
    path('drafts/<int:draft_id>/wizard/next/', views.wizard_next, name='listing-wizard-next'),
    path('drafts/<int:draft_id>/wizard/back/', views.wizard_back, name='listing-wizard-back'),
    path('drafts/<int:draft_id>/wizard/goto/', views.wizard_goto, name='listing-wizard-goto'),
    path('drafts/<int:draft_id>/images/', views.draft_images, name='listing-draft-images'),
    path('drafts/<int:draft_id>/geocode/', views.draft_geocode, name='listing-draft-geocode'),
    path('drafts/<int:draft_id>/submit/', views.draft_submit, name='listing-draft-submit'),

    # Host management
    path('mine/', views.my_listings, name='my-listings'),
    path('<int:listing_id>/pause/', views.listing_pause, name='listing-pause'),
    path('<int:listing_id>/activate/', views.listing_activate, name='listing-activate'),
    path('<int:listing_id>/blocked-dates/', views.blocked_periods, name='listing-blocked-dates'),
    path('<int:listing_id>/blocked-dates/<int:period_id>/', views.blocked_period_delete,
         name='listing-blocked-date-delete'),

    # Admin
    path('<int:listing_id>/moderate/', views.moderate, name='listing-moderate'),

    # Public
    path('', views.listing_search, name='listing-search'),
    path('<int:listing_id>/', views.listing_detail, name='listing-detail'),
    path('<int:listing_id>/availability/', views.listing_availability, name='listing-availability'),
    path('<slug:slug>/', views.listing_detail_by_slug, name='listing-detail-slug'),
]
