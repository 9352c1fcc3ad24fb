# Models package - database models
from affiliate_outreach.models.token import AuthToken
from affiliate_outreach.models.creator import Creator
from affiliate_outreach.models.campaign import Campaign, CampaignStatus
from affiliate_outreach.models.invitation import Invitation, InvitationStatus
