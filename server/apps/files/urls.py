"""URL routes for files app."""

from django.urls import path

from server.apps.files import views

app_name = 'files'

urlpatterns = [
    path('api/upload', views.upload, name='upload'),
    path('api/my-files', views.my_files, name='my-files'),
    path('api/storage', views.storage_usage, name='storage'),
    path('api/files/<uuid:file_id>', views.delete_file, name='delete'),
    path(
        'api/files/<uuid:file_id>/share-email',
        views.share_email,
        name='share-email',
    ),
    path('api/files/<str:share_token>', views.file_info, name='info'),
    path('api/files/<str:share_token>/url', views.download_url, name='url'),
    path('download/<str:share_token>', views.download, name='download'),
]
