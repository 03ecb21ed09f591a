from rest_framework.routers import DefaultRouter

router = DefaultRouter()

# Admin Wallets (ledger)
from billing.views import WalletAdminViewSet
router.register(r"admin/wallets", WalletAdminViewSet, basename="admin-wallets")

# Admin Usage logs
from usage.views import UsageLogAdminViewSet
router.register(r"admin/usage", UsageLogAdminViewSet, basename="admin-usage")

# Admin Calls
from calls.views import CallAdminViewSet, FunctionCallEventAdminViewSet
router.register(r"admin/calls", CallAdminViewSet, basename="admin-calls")
router.register(r"admin/function-calls", FunctionCallEventAdminViewSet, basename="admin-function-calls")

# Admin Alerts
from alerts.views import AlertChannelAdminViewSet, AlertDeliveryAdminViewSet
router.register(r"admin/alerts/channels", AlertChannelAdminViewSet, basename="admin-alert-channels")
router.register(r"admin/alerts/deliveries", AlertDeliveryAdminViewSet, basename="admin-alert-deliveries")
