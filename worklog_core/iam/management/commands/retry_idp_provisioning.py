from __future__ import annotations

from uuid import UUID

from django.core.management.base import BaseCommand, CommandError

from worklog_core.iam.services.provisioning import ProvisioningService


class Command(BaseCommand):
    help = "Re-run identity provider provisioning for users whose steps failed or are still pending."

    def add_arguments(self, parser):
        parser.add_argument("--organization", dest="organization_id", default=None, help="Limit to one organization id.")

    def handle(self, *args, **options):
        organization_id = options.get("organization_id")
        if organization_id:
            try:
                organization_id = UUID(organization_id)
            except ValueError:
                raise CommandError("--organization must be a UUID")

        profiles = list(ProvisioningService.pending_profiles(organization_id=organization_id))
        if not profiles:
            self.stdout.write("Nothing to retry.")
            return

        synced = 0
        for profile in profiles:
            profile = ProvisioningService.run(profile)
            status = profile.idp_sync_status
            if status == "synced":
                synced += 1
            self.stdout.write(f"{profile.user.email}: {status}")

        self.stdout.write(self.style.SUCCESS(f"Retried {len(profiles)} user(s), {synced} synced."))
