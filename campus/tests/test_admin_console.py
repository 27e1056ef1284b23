from io import BytesIO, StringIO

from django.core import mail
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.urls import reverse
from openpyxl import Workbook

from campus.bulk_upload import SpreadsheetFormatError, process_user_upload, read_user_rows
from campus.models import ROLE_ADMIN, AdminAction, BulkUserUpload, User

from .utils import make_admin, make_user, message_texts

XLSX_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def build_workbook(rows, header=('email', 'name', 'role', 'password')):
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(list(header))
    for row in rows:
        sheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class AdminAccessTest(TestCase):

    def test_non_admin_is_bounced_to_feed(self):
        self.client.force_login(make_user('student@campus.edu'))
        response = self.client.get(reverse('admin_dashboard'))
        self.assertRedirects(response, reverse('feed'), fetch_redirect_response=False)
        self.assertIn("Unauthorized: admin access required.", message_texts(response))

    def test_superuser_counts_as_admin(self):
        self.client.force_login(make_user('root@campus.edu', is_superuser=True, is_staff=True))
        self.assertEqual(self.client.get(reverse('admin_dashboard')).status_code, 200)

    def test_dashboard_lists_pending_users(self):
        make_user('waiting@campus.edu', approved=False)
        self.client.force_login(make_admin())
        response = self.client.get(reverse('admin_dashboard'))
        self.assertEqual(
            [u.email for u in response.context['pending_users']], ['waiting@campus.edu']
        )
        self.assertEqual(response.context['pending_approvals_count'], 1)


class ApproveUserTest(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.pending = make_user('waiting@campus.edu', approved=False)
        self.client.force_login(self.admin)
        self.url = reverse('admin_approve_user', args=[self.pending.id])

    def test_approve_logs_and_emails(self):
        self.client.post(self.url)
        self.pending.refresh_from_db()
        self.assertTrue(self.pending.is_approved)

        action = AdminAction.objects.get()
        self.assertEqual(action.action_type, 'approve_user')
        self.assertEqual(action.target_id, str(self.pending.id))
        self.assertEqual(action.details, {'action': 'approved_user'})

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['waiting@campus.edu'])
        self.assertIn('Approved', mail.outbox[0].subject)

    def test_already_approved_is_a_no_op(self):
        self.client.post(self.url)
        response = self.client.post(self.url)
        self.assertIn(f"{self.pending} is already approved.", message_texts(response))
        self.assertEqual(AdminAction.objects.count(), 1)
        self.assertEqual(len(mail.outbox), 1)


class RoleAndActivationTest(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.user = make_user('student@campus.edu')
        self.client.force_login(self.admin)

    def test_update_role_is_audited(self):
        self.client.post(reverse('admin_update_role', args=[self.user.id]), {'role': 'faculty'})
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, 'faculty')
        action = AdminAction.objects.get()
        self.assertEqual(action.action_type, 'update_role')
        self.assertEqual(action.details, {'new_role': 'faculty'})

    def test_invalid_role(self):
        self.client.post(reverse('admin_update_role', args=[self.user.id]), {'role': 'dean'})
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, 'student')
        self.assertFalse(AdminAction.objects.exists())

    def test_admin_cannot_demote_self(self):
        response = self.client.post(
            reverse('admin_update_role', args=[self.admin.id]), {'role': 'student'}
        )
        self.assertIn("You cannot remove your own admin role.", message_texts(response))
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.role, ROLE_ADMIN)

    def test_deactivate_and_reactivate(self):
        url = reverse('admin_toggle_active', args=[self.user.id])
        self.client.post(url)
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)

        self.client.post(url)
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_active)
        self.assertEqual(
            list(AdminAction.objects.order_by('id').values_list('action_type', flat=True)),
            ['deactivate_user', 'reactivate_user'],
        )

    def test_admin_cannot_deactivate_self(self):
        self.client.post(reverse('admin_toggle_active', args=[self.admin.id]))
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.is_active)

    def test_deactivated_user_cannot_log_in(self):
        self.client.post(reverse('admin_toggle_active', args=[self.user.id]))
        self.client.logout()
        response = self.client.post(reverse('login'), {
            'identifier': 'student@campus.edu', 'password': 'pass1234',
        })
        self.assertIn("This account has been deactivated.", message_texts(response))


class AddUserTest(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.client.force_login(self.admin)

    def test_add_user_creates_approved_account(self):
        self.client.post(reverse('admin_add_user'), {
            'email': 'New@Campus.edu', 'name': 'New Person', 'password': 'secret1', 'role': 'investor',
        })
        user = User.objects.get(email='new@campus.edu')
        self.assertTrue(user.is_approved)
        self.assertTrue(user.check_password('secret1'))

        action = AdminAction.objects.get()
        self.assertEqual(action.action_type, 'add_user')
        self.assertEqual(action.details['email'], 'new@campus.edu')

    def test_duplicate_email_is_refused(self):
        make_user('taken@campus.edu')
        response = self.client.post(reverse('admin_add_user'), {
            'email': 'taken@campus.edu', 'name': 'Dup', 'password': 'secret1', 'role': 'student',
        })
        self.assertIn("A user with email taken@campus.edu already exists.", message_texts(response))
        self.assertFalse(AdminAction.objects.exists())

    def test_process_user_upload_returns_new_id(self):
        user_id = process_user_upload(' Mixed@Campus.EDU ', 123456, 'Mixed', 'Alumni')
        user = User.objects.get(pk=user_id)
        self.assertEqual(user.email, 'mixed@campus.edu')
        self.assertEqual(user.role, 'alumni')
        self.assertTrue(user.check_password('123456'))

    def test_process_user_upload_validates_role(self):
        with self.assertRaises(ValidationError):
            process_user_upload('x@campus.edu', 'secret1', 'X', 'wizard')


class BulkUploadTest(TestCase):

    def setUp(self):
        self.admin = make_admin()
        make_user('existing@campus.edu')
        self.client.force_login(self.admin)

    def upload(self, content, name='users.xlsx'):
        return self.client.post(reverse('admin_bulk_upload'), {
            'file': SimpleUploadedFile(name, content, content_type=XLSX_TYPE),
        })

    def test_rows_are_processed_independently(self):
        content = build_workbook([
            ('one@campus.edu', 'One', 'student', 'pass123'),
            ('bad-email', 'Bad', 'student', 'pass123'),
            ('two@campus.edu', 'Two', 'wizard', 'pass123'),
            ('existing@campus.edu', 'Dup', 'student', 'pass123'),
            (None, None, None, None),
            ('three@campus.edu', 'Three', 'Faculty', 123456),
        ])
        response = self.upload(content)

        upload = BulkUserUpload.objects.get()
        self.assertRedirects(
            response, reverse('admin_upload_detail', args=[upload.id]), fetch_redirect_response=False
        )
        self.assertEqual(upload.status, BulkUserUpload.STATUS_PROCESSED)
        self.assertEqual(upload.processed_count, 2)
        self.assertEqual(upload.failed_count, 3)
        self.assertEqual(list(upload.errors.values_list('row_number', flat=True)), [3, 4, 5])

        three = User.objects.get(email='three@campus.edu')
        self.assertEqual(three.role, 'faculty')
        self.assertTrue(three.is_approved)
        self.assertTrue(three.check_password('123456'))

        action = AdminAction.objects.get(action_type='bulk_upload')
        self.assertEqual(action.details['processed'], 2)
        self.assertEqual(action.details['failed'], 3)

    def test_all_rows_failing_marks_upload_failed(self):
        self.upload(build_workbook([('existing@campus.edu', 'Dup', 'student', 'pass123')]))
        upload = BulkUserUpload.objects.get()
        self.assertEqual(upload.status, BulkUserUpload.STATUS_FAILED)

    def test_missing_column_fails_whole_file(self):
        self.upload(build_workbook([('a@campus.edu', 'A')], header=('email', 'name')))
        upload = BulkUserUpload.objects.get()
        self.assertEqual(upload.status, BulkUserUpload.STATUS_FAILED)
        error = upload.errors.get()
        self.assertEqual(error.row_number, 0)
        self.assertIn('role', error.error_message)

    def test_corrupt_file_fails_whole_file(self):
        self.upload(b'this is not a zip archive')
        upload = BulkUserUpload.objects.get()
        self.assertEqual(upload.status, BulkUserUpload.STATUS_FAILED)
        self.assertEqual(upload.errors.get().row_number, 0)

    def test_legacy_xls_is_rejected_up_front(self):
        response = self.upload(b'whatever', name='users.xls')
        self.assertIn("Please upload an Excel .xlsx file", message_texts(response))
        self.assertFalse(BulkUserUpload.objects.exists())

    def test_read_user_rows_header_is_case_insensitive(self):
        rows = read_user_rows(BytesIO(build_workbook(
            [('pw1', 'ada@campus.edu', 'Ada', 'student', 'ignored')],
            header=('Password', 'EMAIL', 'Name', 'Role', 'Notes'),
        )))
        self.assertEqual(rows, [(2, {
            'email': 'ada@campus.edu', 'name': 'Ada', 'role': 'student', 'password': 'pw1',
        })])

    def test_read_user_rows_rejects_empty_sheet(self):
        workbook = Workbook()
        buffer = BytesIO()
        workbook.save(buffer)
        with self.assertRaises(SpreadsheetFormatError):
            read_user_rows(BytesIO(buffer.getvalue()))

    def test_upload_detail_page(self):
        self.upload(build_workbook([('bad', 'Bad', 'student', 'pw1')]))
        upload = BulkUserUpload.objects.get()
        response = self.client.get(reverse('admin_upload_detail', args=[upload.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.context['errors']), 1)


class AuditLogTest(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.client.force_login(self.admin)
        self.actions = [
            AdminAction.log(self.admin, 'approve_user', 'profiles', n) for n in range(3)
        ]

    def test_json_returns_newest_first(self):
        data = self.client.get(reverse('admin_audit_log_json')).json()
        self.assertEqual([a['id'] for a in data['actions']], [a.id for a in reversed(self.actions)])
        self.assertEqual(data['actions'][0]['action'], 'approve user')

    def test_json_after_returns_only_newer_rows(self):
        data = self.client.get(
            reverse('admin_audit_log_json'), {'after': self.actions[0].id}
        ).json()
        self.assertEqual(
            sorted(a['id'] for a in data['actions']), [self.actions[1].id, self.actions[2].id]
        )

    def test_json_after_must_be_integer(self):
        response = self.client.get(reverse('admin_audit_log_json'), {'after': 'soon'})
        self.assertEqual(response.status_code, 400)

    def test_audit_page_renders(self):
        response = self.client.get(reverse('admin_audit_log'))
        self.assertContains(response, 'Approve user')


class CreateAdminsCommandTest(TestCase):

    def test_creates_new_admins(self):
        out = StringIO()
        call_command('create_admins', 'Dean@Campus.edu', 'ops@campus.edu', password='secret1', stdout=out)
        admins = User.objects.filter(role=ROLE_ADMIN, is_approved=True)
        self.assertEqual(
            sorted(admins.values_list('email', flat=True)), ['dean@campus.edu', 'ops@campus.edu']
        )
        self.assertTrue(admins.get(email='ops@campus.edu').check_password('secret1'))
        self.assertIn("Created admin dean@campus.edu", out.getvalue())

    def test_promotes_existing_account(self):
        user = make_user('prof@campus.edu', role='faculty', approved=False)
        call_command('create_admins', 'prof@campus.edu', password='ignored1', stdout=StringIO())
        user.refresh_from_db()
        self.assertEqual(user.role, ROLE_ADMIN)
        self.assertTrue(user.is_approved)
        self.assertTrue(user.check_password('pass1234'))

    def test_invalid_email_raises_command_error(self):
        with self.assertRaises(CommandError):
            call_command('create_admins', 'not-an-email', password='secret1', stdout=StringIO())


class DjangoAdminActionsTest(TestCase):

    def setUp(self):
        self.root = make_admin(is_staff=True, is_superuser=True)
        self.client.force_login(self.root)
        self.url = reverse('admin:campus_user_changelist')

    def run_action(self, action, users):
        return self.client.post(self.url, {
            'action': action,
            '_selected_action': [u.pk for u in users],
        })

    def test_approve_selected_users(self):
        first = make_user('first@campus.edu', approved=False)
        second = make_user('second@campus.edu', approved=False)
        already = make_user('already@campus.edu')

        response = self.run_action('approve_users', [first, second, already])
        self.assertEqual(response.status_code, 302)
        self.assertEqual(User.objects.filter(is_approved=False).count(), 0)

        actions = AdminAction.objects.filter(action_type='approve_user')
        self.assertEqual(
            sorted(actions.values_list('target_id', flat=True)), sorted([str(first.pk), str(second.pk)])
        )
        self.assertEqual(actions.first().details['via'], 'django_admin')
        self.assertEqual(sorted(m.to[0] for m in mail.outbox), ['first@campus.edu', 'second@campus.edu'])

    def test_deactivate_selected_users_skips_self(self):
        target = make_user('target@campus.edu')
        self.run_action('deactivate_users', [target, self.root])

        target.refresh_from_db()
        self.root.refresh_from_db()
        self.assertFalse(target.is_active)
        self.assertTrue(self.root.is_active)
        action = AdminAction.objects.get()
        self.assertEqual(action.action_type, 'deactivate_user')
        self.assertEqual(action.target_id, str(target.pk))
