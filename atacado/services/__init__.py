"""Domain services: multi-row workflows and gateway clients."""
