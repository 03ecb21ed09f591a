from django.core.management.base import BaseCommand, CommandError

from alerts.services.notify import raise_alert, EVT_LEDGER_DRIFT
from billing.models import Wallet
from billing.services.ledger import reconcile_wallet


class Command(BaseCommand):
    help = "Vérifie que le solde de chaque wallet égale la somme de ses transactions."

    def add_arguments(self, parser):
        parser.add_argument("--company", type=int, help="Limiter à un tenant")
        parser.add_argument("--no-alert", action="store_true", help="Ne pas notifier le canal d'alerte")

    def handle(self, *args, **options):
        qs = Wallet.objects.order_by("id")
        if options["company"]:
            qs = qs.filter(company_id=options["company"])

        drifted = 0
        for wallet in qs.iterator():
            rec = reconcile_wallet(wallet)
            if rec.ok:
                continue
            drifted += 1
            self.stderr.write(f"wallet {rec.wallet_id}: balance={rec.balance} ledger={rec.ledger_total} "
                              f"drift={rec.drift}")
            if not options["no_alert"]:
                raise_alert(EVT_LEDGER_DRIFT, {
                    "wallet_id": rec.wallet_id,
                    "balance": rec.balance,
                    "ledger_total": rec.ledger_total,
                    "drift": rec.drift,
                }, company_id=wallet.company_id)

        if drifted:
            raise CommandError(f"{drifted} wallet(s) out of balance")
        self.stdout.write("all wallets reconciled")
