class BillingError(Exception):
    """Erreur de la couche facturation (wallet/abonnement)."""


class WalletNotFound(BillingError):
    def __init__(self, wallet_id=None, company_id=None):
        self.wallet_id = wallet_id
        self.company_id = company_id
        super().__init__(f"wallet not found (wallet_id={wallet_id}, company_id={company_id})")
