from django.dispatch import Signal


# Fired inside the deciding transaction once a request leaves PENDING via an admin decision
# Provides: sender=<request model>, instance=request_instance, decision='APPROVED'|'DECLINED', actor=User
request_decided = Signal()
