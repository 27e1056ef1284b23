from io import BytesIO

from django.contrib.messages import get_messages
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from campus.models import ROLE_ADMIN, ROLE_STUDENT, User


def make_user(email, role=ROLE_STUDENT, approved=True, complete=True, password='pass1234', **extra):
    """Create a user that can log in; ``complete`` fills title and bio."""
    fields = {
        'name': email.split('@')[0].title(),
        'role': role,
        'is_approved': approved,
    }
    if complete:
        fields.update(title='Student', bio='Hello campus')
    fields.update(extra)
    return User.objects.create_user(username=email, email=email, password=password, **fields)


def make_admin(email='admin@campus.edu', **extra):
    return make_user(email, role=ROLE_ADMIN, **extra)


def message_texts(response):
    return [str(m) for m in get_messages(response.wsgi_request)]


def make_image(name='photo.png', size=(4, 4)):
    buffer = BytesIO()
    Image.new('RGB', size, color='teal').save(buffer, format='PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')
