# TrustGate: mobile session trust scoring and decision engine.
