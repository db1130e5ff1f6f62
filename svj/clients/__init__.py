"""HTTP clients for the serverless voting routes."""

from svj.clients.voting_client import PrimaryPathUnavailable, VotingClient

__all__ = ["PrimaryPathUnavailable", "VotingClient"]
