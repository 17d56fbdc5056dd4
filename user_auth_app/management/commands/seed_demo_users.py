from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from profiles.models import Profile
from user_auth_app.authentication import issue_token

DEMO_USERS = {
    Profile.Role.CLIENT: {"name": "Demo Client", "password": "client-demo-24", "email": "client@example.com"},
    Profile.Role.FREELANCER: {"name": "Demo Freelancer", "password": "freelancer-demo-24", "email": "freelancer@example.com"},
    Profile.Role.ADMIN: {"name": "Demo Admin", "password": "admin-demo-24", "email": "admin@example.com"},
}


class Command(BaseCommand):
    help = "Create or update one demo user per role (client, freelancer, admin)."

    def handle(self, *args, **options):
        User = get_user_model()

        for role, cfg in DEMO_USERS.items():
            u, created = User.objects.get_or_create(
                username=cfg["email"],
                defaults={"email": cfg["email"], "first_name": cfg["name"]},
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f"Created user '{u.email}'"))
            else:
                self.stdout.write(f"User '{u.email}' already exists")

            u.set_password(cfg["password"])
            u.is_active = True
            u.is_staff = role == Profile.Role.ADMIN
            u.save(update_fields=["password", "is_active", "is_staff"])

            prof, _ = Profile.objects.get_or_create(user=u, defaults={"role": role})
            if prof.role != role or prof.is_suspended:
                prof.role = role
                prof.is_suspended = False
                prof.save(update_fields=["role", "is_suspended"])

            token = issue_token(u)
            self.stdout.write(f"  → role={role}, token={token.key}")

        self.stdout.write(self.style.SUCCESS("Demo users ready."))
