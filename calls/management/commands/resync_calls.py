from django.core.management.base import BaseCommand, CommandError

from calls.services.lifecycle import apply_end_of_call_report
from calls.services.provider_client import ProviderClient, ProviderError, as_end_of_call_message
from calls.tasks import settle_call_task
from ingress.events import EndOfCallReport, MalformedEvent
from ingress.serializers.events import decode_event


class Command(BaseCommand):
    help = "Relit des appels terminés depuis l'API provider et les rejoue comme end-of-call-report."

    def add_arguments(self, parser):
        parser.add_argument("call_ids", nargs="+", help="Identifiants provider des appels")
        parser.add_argument("--no-settle", action="store_true", help="Ne pas déclencher la facturation")

    def handle(self, *args, **options):
        try:
            client = ProviderClient.from_settings()
        except ProviderError as e:
            raise CommandError(str(e))

        failures = 0
        with client:
            for call_id in options["call_ids"]:
                try:
                    event = decode_event(as_end_of_call_message(client.get_call(call_id)))
                except (ProviderError, MalformedEvent) as e:
                    failures += 1
                    self.stderr.write(f"{call_id}: {e}")
                    continue
                if not isinstance(event, EndOfCallReport):
                    failures += 1
                    self.stderr.write(f"{call_id}: unexpected event {event.type}")
                    continue

                call = apply_end_of_call_report(event)
                if not options["no_settle"]:
                    settle_call_task.delay(call.provider_call_id)
                self.stdout.write(f"{call_id}: {call.lifecycle_state} ({call.duration_seconds}s)")

        if failures:
            raise CommandError(f"{failures} call(s) could not be resynced")
