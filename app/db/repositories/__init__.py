from app.db.repositories.projects import ProjectsRepository
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.messages import MessagesRepository
from app.db.repositories.leads import LeadsRepository
from app.db.repositories.clients import ClientActivitiesRepository, ClientsRepository
from app.db.repositories.published_websites import PublishedWebsitesRepository
from app.db.repositories.credits import CreditsRepository, InsufficientCreditsError
