"""
Front: server-rendered marketplace UI.
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, Form, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from loguru import logger

from front.constants import SORT_OPTIONS, TEMPLATES_DIR, money, status_badge
from market.api.client import MarketAPIError
from market.api.identity_api import IdentityError
from market.api.products_api import get_product, list_products
from market.api.reviews_api import list_reviews
from market.catalog.pipeline import CATEGORY_GRID, FULL_CATALOG, FilterCriteria, build_view
from market.catalog.records import (
    ALL,
    display_name,
    display_provider,
    effective_category,
    effective_description,
    effective_location,
    effective_price,
    record_id,
)
from market.catalog.state import CatalogState
from market.services.booking_service import (
    average_rating,
    book_service,
    cancel_booking,
    find_booking,
    is_own_service,
    my_bookings,
    review_count,
    submit_review,
)
from market.services.provider_service import (
    SERVICE_STATUSES,
    ServiceFormError,
    create_service,
    delete_service,
    empty_form,
    form_from_service,
    my_services,
    update_service,
)
from market.services.session_service import (
    UserSession,
    register,
    sign_in_with_password,
    sign_out,
    toggle_theme,
    update_my_profile,
)
from market.services.stats_service import ROLES, load_admin_stats, load_provider_overview, update_user_role, with_percent

CATALOG_PARAMS = ("search", "category", "location", "min_price", "max_price", "sort")


def _redirect(url: str, **flash: str) -> RedirectResponse:
    params = {k: v for k, v in flash.items() if v}
    if params:
        url += ("&" if "?" in url else "?") + urlencode(params)
    return RedirectResponse(url=url, status_code=303)


def get_session(request: Request) -> UserSession:
    return request.state.session


def _denied(session: UserSession, back: str, e: PermissionError) -> RedirectResponse:
    if not session.signed_in:
        return _redirect("/login", err=str(e))
    return _redirect(back, err=str(e))


def create_app(deps: Dict[str, Any]) -> FastAPI:
    settings = deps["settings"]
    market = deps["market"]
    identity = deps["identity"]
    store = deps["sessions"]

    app = FastAPI(title="Synvo IT Solutions")
    app.state.deps = deps

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.globals.update(
        money=money,
        status_badge=status_badge,
        display_name=display_name,
        display_provider=display_provider,
        effective_category=effective_category,
        effective_description=effective_description,
        effective_location=effective_location,
        effective_price=effective_price,
        record_id=record_id,
    )

    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        cookie = settings.session_cookie_name
        # sqlite calls stay off the event loop
        session = await run_in_threadpool(store.load, request.cookies.get(cookie))
        request.state.session = session
        response = await call_next(request)
        # Handlers may rotate the id, so read it back from the request state
        session = request.state.session
        await run_in_threadpool(store.save, session)
        response.set_cookie(
            cookie,
            session.session_id,
            max_age=int(settings.session_ttl_minutes) * 60,
            httponly=True,
            samesite="lax",
        )
        return response

    def render(request: Request, name: str, session: UserSession, **ctx: Any) -> HTMLResponse:
        ctx.setdefault("ok", request.query_params.get("ok"))
        ctx.setdefault("err", request.query_params.get("err"))
        ctx["session"] = session
        return templates.TemplateResponse(request, name, ctx)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    def home(request: Request, category: str = ALL, session: UserSession = Depends(get_session)):
        top_rated: List[Dict[str, Any]] = []
        top_rated_error = ""
        try:
            top_rated = list_products(market, sort_by="rating", limit=settings.top_rated_limit)
        except MarketAPIError as e:
            logger.error("Top-rated fetch failed: {}", e)
            top_rated_error = "Unable to load top-rated services."

        grid = None
        grid_error = ""
        try:
            records = list_products(market)
            grid = build_view(records, FilterCriteria(category=category), CATEGORY_GRID)
        except MarketAPIError as e:
            logger.error("Services fetch failed: {}", e)
            grid_error = "Failed to load services"

        return render(
            request,
            "home.html",
            session,
            top_rated=top_rated,
            top_rated_error=top_rated_error,
            grid=grid,
            grid_error=grid_error,
            selected_category=grid.criteria.category if grid else category,
        )

    @app.get("/services", response_class=HTMLResponse)
    def services(request: Request, session: UserSession = Depends(get_session)):
        q = request.query_params
        state = session.catalog.with_changes(**{k: q.get(k) for k in CATALOG_PARAMS})
        if state is session.catalog and q.get("page") is not None:
            state = state.goto(q.get("page"))

        try:
            records = list_products(market)
        except MarketAPIError as e:
            logger.error("Services fetch failed: {}", e)
            session.catalog = state
            return render(
                request,
                "services.html",
                session,
                view=None,
                criteria=state.criteria,
                error="Failed to load services",
                sort_options=SORT_OPTIONS,
            )

        features = replace(FULL_CATALOG, page_size=settings.catalog_page_size)
        view = build_view(records, state.criteria, features)
        session.catalog = CatalogState(criteria=view.criteria)
        return render(
            request,
            "services.html",
            session,
            view=view,
            criteria=session.catalog.criteria,
            error="",
            sort_options=SORT_OPTIONS,
        )

    @app.post("/services/clear")
    def services_clear(request: Request):
        session = request.state.session
        session.catalog = session.catalog.cleared()
        return _redirect("/services")

    @app.get("/service-details/{service_id}", response_class=HTMLResponse)
    def service_details(request: Request, service_id: str, session: UserSession = Depends(get_session)):
        try:
            service = get_product(market, service_id)
        except MarketAPIError as e:
            logger.error("Service {} fetch failed: {}", service_id, e)
            return render(request, "service_details.html", session, service=None, error=e.operation)

        reviews: List[Dict[str, Any]] = []
        review_error = ""
        try:
            reviews = list_reviews(market, service_id)
        except MarketAPIError as e:
            logger.error("Reviews fetch for {} failed: {}", service_id, e)
            review_error = "Unable to load reviews."

        return render(
            request,
            "service_details.html",
            session,
            service=service,
            service_id=service_id,
            reviews=reviews,
            review_error=review_error,
            average_rating=average_rating(service, reviews),
            review_count=review_count(service, reviews),
            own_service=is_own_service(session, service),
            error="",
        )

    @app.post("/service-details/{service_id}/book")
    def service_book(
        request: Request,
        service_id: str,
        booking_date: str = Form(""),
        notes: str = Form(""),
    ):
        session = request.state.session
        back = f"/service-details/{service_id}"
        if not session.signed_in:
            return _redirect("/login", err="Please sign in to book a service")
        try:
            service = get_product(market, service_id)
            saved = book_service(market, session, service, booking_date, notes)
        except (ValueError, PermissionError) as e:
            return _redirect(back, err=str(e))
        except MarketAPIError as e:
            logger.error("Booking {} failed: {}", service_id, e)
            return _redirect(back, err="Unable to submit booking. Please try again.")
        return _redirect("/my-bookings", ok="Booking submitted successfully!", highlight=record_id(saved))

    @app.get("/my-bookings", response_class=HTMLResponse)
    def bookings_page(request: Request, highlight: str = "", session: UserSession = Depends(get_session)):
        bookings: List[Dict[str, Any]] = []
        error = ""
        try:
            bookings = my_bookings(market, session)
        except MarketAPIError as e:
            logger.error("Bookings fetch failed: {}", e)
            error = "Unexpected error while loading bookings."

        reviewed = set(session.reviewed)
        reviewed.update(record_id(b) for b in bookings if b.get("reviewSubmitted"))
        return render(
            request,
            "my_bookings.html",
            session,
            bookings=bookings,
            error=error,
            highlight=highlight,
            reviewed=reviewed,
        )

    @app.post("/my-bookings/{booking_id}/delete")
    def bookings_delete(request: Request, booking_id: str):
        session = request.state.session
        try:
            cancel_booking(market, session, booking_id)
        except PermissionError as e:
            return _denied(session, "/my-bookings", e)
        except ValueError as e:
            return _redirect("/my-bookings", err=str(e))
        except MarketAPIError as e:
            logger.error("Delete booking {} failed: {}", booking_id, e)
            return _redirect("/my-bookings", err="Unable to delete booking. Please retry.")
        return _redirect("/my-bookings", ok="Booking deleted.")

    @app.post("/my-bookings/{booking_id}/review")
    def bookings_review(
        request: Request,
        booking_id: str,
        rating: str = Form("5"),
        comment: str = Form(""),
    ):
        session = request.state.session
        try:
            booking = find_booking(my_bookings(market, session), booking_id)
            if booking is None:
                return _redirect("/my-bookings", err="Booking not found.")
            submit_review(market, session, booking, rating, comment)
        except (ValueError, PermissionError) as e:
            return _redirect("/my-bookings", err=str(e))
        except MarketAPIError as e:
            logger.error("Review for booking {} failed: {}", booking_id, e)
            return _redirect("/my-bookings", err="Unable to submit review. Please retry.")
        if booking_id not in session.reviewed:
            session.reviewed.append(booking_id)
        return _redirect("/my-bookings", ok="Review submitted. Thank you!")

    @app.get("/my-services", response_class=HTMLResponse)
    def services_mine(request: Request, edit: str = "", session: UserSession = Depends(get_session)):
        items: List[Dict[str, Any]] = []
        error = ""
        try:
            items = my_services(market, session)
        except MarketAPIError as e:
            logger.error("My services fetch failed: {}", e)
            error = "Failed to load services. Please try again."

        editing = None
        if edit:
            editing = next((s for s in items if record_id(s) == edit), None)
        return render(
            request,
            "my_services.html",
            session,
            services=items,
            error=error,
            editing=editing,
            edit_form=form_from_service(editing) if editing else None,
            statuses=SERVICE_STATUSES,
        )

    @app.post("/my-services/{service_id}/edit")
    def services_edit(
        request: Request,
        service_id: str,
        name: str = Form(""),
        description: str = Form(""),
        price: str = Form(""),
        category: str = Form(""),
        location: str = Form(""),
        image: str = Form(""),
        status: str = Form("Active"),
        duration: str = Form(""),
    ):
        form = dict(
            name=name, description=description, price=price, category=category,
            location=location, image=image, status=status, duration=duration,
        )
        session = request.state.session
        try:
            update_service(market, session, service_id, form)
        except PermissionError as e:
            return _denied(session, "/my-services", e)
        except ServiceFormError as e:
            return _redirect(f"/my-services?edit={service_id}", err="; ".join(e.errors.values()))
        except ValueError as e:
            return _redirect("/my-services", err=str(e))
        except MarketAPIError as e:
            logger.error("Update service {} failed: {}", service_id, e)
            return _redirect("/my-services", err="Unable to update service. Please retry.")
        return _redirect("/my-services", ok="Service updated successfully!")

    @app.post("/my-services/{service_id}/delete")
    def services_delete(request: Request, service_id: str):
        session = request.state.session
        try:
            delete_service(market, session, service_id)
        except PermissionError as e:
            return _denied(session, "/my-services", e)
        except ValueError as e:
            return _redirect("/my-services", err=str(e))
        except MarketAPIError as e:
            logger.error("Delete service {} failed: {}", service_id, e)
            return _redirect("/my-services", err="Unable to delete service. Please retry.")
        return _redirect("/my-services", ok="Service deleted.")

    @app.get("/add-service", response_class=HTMLResponse)
    def add_service_page(request: Request, session: UserSession = Depends(get_session)):
        return render(request, "add_service.html", session, form=empty_form(), errors={}, statuses=SERVICE_STATUSES)

    @app.post("/add-service", response_class=HTMLResponse)
    def add_service_submit(
        request: Request,
        name: str = Form(""),
        description: str = Form(""),
        price: str = Form(""),
        category: str = Form(""),
        location: str = Form(""),
        image: str = Form(""),
        status: str = Form("Active"),
    ):
        session = request.state.session
        form = dict(
            name=name, description=description, price=price, category=category,
            location=location, image=image, status=status,
        )
        errors: Dict[str, str] = {}
        try:
            create_service(market, session, form)
        except PermissionError as e:
            return _redirect("/login", err=str(e))
        except ServiceFormError as e:
            errors = e.errors
        except MarketAPIError as e:
            logger.error("Add service failed: {}", e)
            errors = {"submit": e.operation if e.operation != "Add service" else "Unable to add service. Please try again."}

        if errors:
            return render(request, "add_service.html", session, form=form, errors=errors, statuses=SERVICE_STATUSES)
        return _redirect("/my-services", ok="Service added successfully!")

    @app.get("/dashboard", response_class=HTMLResponse)
    def dashboard(request: Request, session: UserSession = Depends(get_session)):
        if not session.signed_in:
            return _redirect("/login")
        try:
            overview = load_provider_overview(market, session.email)
        except MarketAPIError as e:
            logger.error("Dashboard data fetch failed: {}", e)
            return render(request, "dashboard.html", session, overview=None, error="Failed to load dashboard data")
        return render(
            request,
            "dashboard.html",
            session,
            overview=overview,
            category_bars=with_percent(overview.services_by_category),
            price_bars=with_percent(overview.price_ranges),
            month_bars=with_percent(overview.bookings_by_month),
            error="",
        )

    @app.get("/admin", response_class=HTMLResponse)
    def admin(request: Request, session: UserSession = Depends(get_session)):
        if not session.signed_in:
            return _redirect("/login")
        if not session.is_admin:
            return _redirect("/dashboard")
        try:
            stats, users = load_admin_stats(market)
        except MarketAPIError as e:
            logger.error("Admin data fetch failed: {}", e)
            return render(request, "admin.html", session, stats=None, users=[], error="Failed to load admin data")
        return render(
            request,
            "admin.html",
            session,
            stats=stats,
            users=users,
            roles=ROLES,
            role_bars=with_percent(stats.users_by_role),
            category_bars=with_percent(stats.services_by_category),
            day_bars=with_percent(stats.bookings_last_7_days),
            error="",
        )

    @app.post("/admin/users/role")
    def admin_role(request: Request, email: str = Form(""), role: str = Form("")):
        session = request.state.session
        if not session.is_admin:
            return _redirect("/dashboard")
        try:
            update_user_role(market, email, role)
        except ValueError as e:
            return _redirect("/admin", err=str(e))
        except MarketAPIError as e:
            logger.error("Role update for {} failed: {}", email, e)
            return _redirect("/admin", err="Failed to update user role")
        return _redirect("/admin", ok=f"Role of {email} set to {role}")

    @app.get("/profile", response_class=HTMLResponse)
    def profile(request: Request, edit: int = 0, session: UserSession = Depends(get_session)):
        return render(request, "profile.html", session, editing=bool(edit))

    @app.post("/profile")
    def profile_update(request: Request, display_name: str = Form(""), photo_url: str = Form("")):
        session = request.state.session
        try:
            update_my_profile(identity, market, session, display_name, photo_url)
        except ValueError as e:
            return _redirect("/profile", err=str(e))
        except (IdentityError, MarketAPIError) as e:
            logger.error("Profile update failed: {}", e)
            return _redirect("/profile", err=str(e) or "Unable to update profile.")
        return _redirect("/profile", ok="Profile updated successfully.")

    @app.get("/login", response_class=HTMLResponse)
    def login_page(request: Request, session: UserSession = Depends(get_session)):
        return render(request, "login.html", session, email="")

    @app.post("/login", response_class=HTMLResponse)
    def login_submit(request: Request, email: str = Form(""), password: str = Form("")):
        session = request.state.session
        try:
            store.rotate(session)
            sign_in_with_password(identity, market, session, email, password)
        except (ValueError, IdentityError) as e:
            return render(request, "login.html", session, email=email, err=str(e))
        return _redirect("/")

    @app.get("/register", response_class=HTMLResponse)
    def register_page(request: Request, session: UserSession = Depends(get_session)):
        return render(request, "register.html", session, name="", email="", photo_url="")

    @app.post("/register", response_class=HTMLResponse)
    def register_submit(
        request: Request,
        name: str = Form(""),
        email: str = Form(""),
        photo_url: str = Form(""),
        password: str = Form(""),
        confirm_password: str = Form(""),
    ):
        session = request.state.session
        try:
            store.rotate(session)
            register(identity, market, session, name, email, photo_url, password, confirm_password)
        except (ValueError, IdentityError) as e:
            return render(request, "register.html", session, name=name, email=email, photo_url=photo_url, err=str(e))
        return _redirect("/")

    @app.post("/logout")
    def logout(request: Request):
        session = request.state.session
        sign_out(session)
        store.rotate(session)
        return _redirect("/")

    @app.post("/theme/toggle")
    def theme_toggle(request: Request, back: Optional[str] = Form(None)):
        toggle_theme(request.state.session)
        # Only same-site paths
        target = back if back and back.startswith("/") and not back.startswith("//") else "/"
        return _redirect(target)

    return app
