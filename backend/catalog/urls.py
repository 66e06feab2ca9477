from django.urls import path
from . import views

urlpatterns = [
    # Products
    path('products/', views.product_list_create, name='product-list-create'),
    path('products/<int:pk>/', views.product_detail, name='product-detail'),
    path('products/<int:pk>/price/', views.product_price_quote, name='product-price-quote'),
    path('products/<int:pk>/label/', views.product_label, name='product-label'),
    path('products/<int:product_pk>/models/', views.product_model_list_create, name='product-model-list-create'),
    path('products/<int:product_pk>/models/<int:pk>/', views.product_model_detail, name='product-model-detail'),

    # Raw materials
    path('materials/', views.material_list_create, name='material-list-create'),
    path('materials/<int:pk>/', views.material_detail, name='material-detail'),
    path('materials/<int:pk>/adjust-stock/', views.material_adjust_stock, name='material-adjust-stock'),

    # Labels
    path('labels/code/', views.code_image, name='label-code-image'),
    path('labels/thermal/', views.thermal_labels, name='label-thermal'),
    path('labels/pdf/', views.barcode_pdf, name='label-pdf'),
    path('labels/settings/', views.thermal_settings, name='label-settings'),
]
