"""Protected-label admission webhook for Kubernetes."""
