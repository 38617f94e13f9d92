# backend/mt_core/iam/management/commands/ensure_super_admin.py

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from mt_core.iam.models import Profile, Role


class Command(BaseCommand):
    help = "Ensure a super-admin account (role=admin) exists for the given email (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("email")
        parser.add_argument("--password", default=None, help="Set/reset the password.")
        parser.add_argument("--name", default="", help="Display name for a new profile.")

    @transaction.atomic
    def handle(self, *args, **options):
        email = options["email"].strip().lower()
        if "@" not in email:
            raise CommandError(f"Not an email address: {email!r}")

        User = get_user_model()
        user, user_created = User.objects.get_or_create(username=email, defaults={"email": email})
        if options["password"]:
            user.set_password(options["password"])
            user.save(update_fields=["password"])
        elif user_created:
            raise CommandError("--password is required when creating a new account.")

        profile, profile_created = Profile.objects.get_or_create(
            user=user,
            defaults={"role": Role.ADMIN, "name": options["name"]},
        )
        if not profile_created and profile.role != Role.ADMIN:
            profile.role = Role.ADMIN
            profile.hospital = None
            profile.hospital_name = ""
            profile.save(update_fields=["role", "hospital", "hospital_name", "updated_at"])

        self.stdout.write(
            self.style.SUCCESS(
                f"Super admin ensured for {email}. "
                f"Account created: {user_created}. Profile created: {profile_created}."
            )
        )
