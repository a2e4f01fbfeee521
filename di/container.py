from __future__ import annotations

from dependency_injector import containers, providers

from core.settings import SETTINGS
from infra.resources import DatabaseResource, build_chat_model


class InfrastructureContainer(containers.DeclarativeContainer):
    # Database
    database = providers.Resource(
        DatabaseResource,
        database_url=str(SETTINGS.DATABASE.DATABASE_URL),
    )

    # Chat model (built lazily on first use)
    chat_model = providers.Singleton(
        build_chat_model,
        model=SETTINGS.OPENAI.OPENAI_MODEL,
        api_key=SETTINGS.OPENAI.OPENAI_API_KEY.get_secret_value(),
        base_url=SETTINGS.OPENAI.OPENAI_BASE_URL,
        temperature=SETTINGS.OPENAI.OPENAI_TEMPERATURE,
        max_tokens=SETTINGS.OPENAI.OPENAI_MAX_TOKENS,
        timeout=SETTINGS.OPENAI.OPENAI_TIMEOUT,
    )


def _stream_invoker(mode: str, native, simulated):
    return native if mode == "native" else simulated


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    # Model invocation
    model_invoker = providers.Singleton(
        "advisor.llm.invoker.ChatModelInvoker",
        llm=infrastructure.chat_model,
        model_name=SETTINGS.OPENAI.OPENAI_MODEL,
    )

    simulated_stream_invoker = providers.Singleton(
        "advisor.llm.streaming.SimulatedStreamInvoker",
        inner=model_invoker,
        chunk_delay=SETTINGS.CHAT.STREAM_CHUNK_DELAY_MS / 1000,
    )

    stream_invoker = providers.Callable(
        _stream_invoker,
        mode=SETTINGS.CHAT.STREAM_MODE,
        native=model_invoker,
        simulated=simulated_stream_invoker,
    )

    # Orchestrator is per request: callers supply storage bound to their session
    conversation_orchestrator = providers.Factory(
        "advisor.pipeline.orchestrator.ConversationOrchestrator",
        invoker=model_invoker,
        stream_invoker=stream_invoker,
        history_window=SETTINGS.CHAT.HISTORY_WINDOW,
        max_recommendations=SETTINGS.CHAT.MAX_RECOMMENDATIONS,
        max_next_steps=SETTINGS.CHAT.MAX_NEXT_STEPS,
        title_max_chars=SETTINGS.CHAT.TITLE_MAX_CHARS,
        default_language=SETTINGS.CHAT.DEFAULT_LANGUAGE,
    )

    conversation_summarizer = providers.Factory(
        "advisor.pipeline.summarizer.ConversationSummarizer",
        invoker=model_invoker,
    )

    conversation_service = providers.Factory(
        "api.features.conversations.service.ConversationService",
    )

    car_service = providers.Factory(
        "api.features.cars.service.CarService",
    )

    recommendation_service = providers.Factory(
        "api.features.recommendations.service.RecommendationService",
    )

    user_service = providers.Factory(
        "api.features.users.service.UserService",
    )

    health_service = providers.Factory(
        "api.features.health.service.HealthService",
        database=infrastructure.database,
        invoker=model_invoker,
        environment=SETTINGS.APP.ENVIRONMENT,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    services = providers.DependenciesContainer()

    chat_controller = providers.Factory(
        "api.features.chat.controller.ChatController",
        orchestrator_factory=services.conversation_orchestrator.provider,
        conversation_service=services.conversation_service,
    )

    conversation_controller = providers.Factory(
        "api.features.conversations.controller.ConversationController",
        conversation_service=services.conversation_service,
        summarizer=services.conversation_summarizer,
    )

    car_controller = providers.Factory(
        "api.features.cars.controller.CarController",
        car_service=services.car_service,
    )

    recommendation_controller = providers.Factory(
        "api.features.recommendations.controller.RecommendationController",
        recommendation_service=services.recommendation_service,
    )

    user_controller = providers.Factory(
        "api.features.users.controller.UserController",
        user_service=services.user_service,
    )

    health_controller = providers.Factory(
        "api.features.health.controller.HealthController",
        health_service=services.health_service,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.main",
            "api.shared.db",
            "api.features.chat.router",
            "api.features.conversations.router",
            "api.features.cars.router",
            "api.features.recommendations.router",
            "api.features.users.router",
            "api.features.health.router",
        ]
    )

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)
    controllers = providers.Container(ControllerContainer, services=services)
