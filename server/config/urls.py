from django.contrib import admin
from django.urls import path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from roomlift import views

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", views.api_root, name="api_root"),
    path("api/health/", views.health_check, name="health_check"),

    # Jobs
    path("api/images/enhance/", views.enhance_image, name="enhance_image"),
    path("api/images/decorate/", views.decorate_image, name="decorate_image"),
    path("api/images/<int:image_id>/", views.image_detail, name="image_detail"),
    path("api/batches/", views.create_batch, name="create_batch"),
    path("api/batches/<int:batch_id>/", views.batch_detail, name="batch_detail"),

    # Catalogue and account
    path("api/models/", views.list_ai_models, name="ai_models"),
    path("api/credits/", views.credit_summary, name="credit_summary"),
    path("api/enhancements/history/", views.enhancement_history, name="enhancement_history"),

    # Schema
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger_ui"),
]
