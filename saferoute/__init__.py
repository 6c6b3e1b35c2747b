"""Chicago Safe Route: incident classification, danger field and route safety scoring"""
from .categories import IncidentCategory, classify
from .incidents import IncidentPoint, IncidentStore, CategoryFilter
from .danger_field import DangerField
from .route_safety import RoutePath, RouteAssessment, RouteSafetyEvaluator, SafetyRating
from .crime_ingestion import ChicagoCrimeIngestion
from .danger_grid import DangerGrid
from .export import SafeRouteExporter
