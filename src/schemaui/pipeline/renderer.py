"""
Schema Renderer
Walks a schema tree into a resolved, data-bound render tree
"""

import asyncio
import inspect
import time
from typing import Any, Dict, List, Mapping, Optional, Union

from ..core import LogContext, Settings, fingerprint, get_logger, get_settings
from ..core.errors import (
    ErrorCode,
    RenderError,
    SchemaUIError,
    UnknownComponentError,
    error_message,
)
from ..core.id import GenerationID
from ..datasource import DataSource, QueryResult
from ..expression import ExpressionEvaluator
from ..monitoring import MetricsCollector
from ..registry import ComponentRegistry, RenderProps
from ..schema import Leaf, Nodes, SchemaNode, SchemaParser
from .binding import DataBinding, extract_binding, fetch_binding
from .context import RenderContext
from .props import resolve_node_props
from .session import RenderSession
from .state import NodeState, RenderedNode

logger = get_logger(__name__)


def error_placeholder(key: str, type_tag: str, error: BaseException) -> Dict[str, Any]:
    """Element rendered in place of a node whose subtree failed."""
    code = error.code if isinstance(error, SchemaUIError) else ErrorCode.RENDER_FAILED
    return {
        "type": "error",
        "key": key,
        "for": type_tag,
        "code": code,
        "message": error_message(error),
    }


class SchemaRenderer:
    """
    Renders schema nodes through a component registry.

    Per node: responsive attributes, then conditionals (hidden nodes stop
    there), then the optional data fetch, then dispatch by type tag.
    Children render concurrently and keep document order. Failures are
    contained to the failing node's subtree and rendered as an error
    placeholder; nothing aborts the whole pass.
    """

    def __init__(
        self,
        registry: ComponentRegistry,
        evaluator: Optional[ExpressionEvaluator] = None,
        data_source: Optional[DataSource] = None,
        metrics: Optional[MetricsCollector] = None,
        parser: Optional[SchemaParser] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.registry = registry
        self.metrics = metrics
        self.data_source = data_source
        self.default_breakpoint = settings.default_breakpoint
        self.evaluator = evaluator or ExpressionEvaluator(
            strict=settings.strict_expressions,
            cache_size=settings.expression_cache_size,
            on_failure=metrics.record_expression_failure if metrics else None,
        )
        self.parser = parser or SchemaParser(
            max_depth=settings.max_schema_depth,
            max_size=settings.max_schema_size,
        )

    def _context(self, context: Optional[RenderContext]) -> RenderContext:
        if context is None:
            return RenderContext(breakpoint=self.default_breakpoint, data_source=self.data_source)
        if context.data_source is None and self.data_source is not None:
            return context.child(data_source=self.data_source)
        return context

    async def render(
        self,
        node: SchemaNode,
        context: Optional[RenderContext] = None,
        session: Optional[RenderSession] = None,
    ) -> Optional[RenderedNode]:
        """
        Render a tree.

        Args:
            node: Root schema node
            context: Breakpoint, user, record and data source
            session: Mounted view to report node states to; a new
                generation is started on it

        Returns:
            The rendered root, or None when the root is hidden or the pass
            was superseded (teardown or a newer render) before finishing
        """
        context = self._context(context)
        session = session or RenderSession(metrics=self.metrics)
        generation = session.begin()

        start = time.perf_counter()
        with LogContext(session=session.id, generation=generation):
            result = await self._render_node(node, context, session, generation, node.key(0), 0)
            duration = time.perf_counter() - start

            current = session.is_current(generation)
            if self.metrics:
                self.metrics.record_render("ok" if current else "stale", duration)
            if not current:
                logger.info("render_superseded", duration_ms=round(duration * 1000, 2))
                return None

            logger.info(
                "render_complete",
                root=node.type,
                hidden=result is None,
                duration_ms=round(duration * 1000, 2),
            )
        return result

    async def render_document(
        self,
        source: Union[str, bytes, Mapping[str, Any], List[Any], SchemaNode],
        context: Optional[RenderContext] = None,
        session: Optional[RenderSession] = None,
    ) -> Optional[RenderedNode]:
        """
        Parse then render a document.

        Raises:
            SchemaValidationError: the document is malformed (document
                level, raised before anything renders)
        """
        node = source if isinstance(source, SchemaNode) else self.parser.parse(source)
        logger.debug("document_parsed", root=node.type, fingerprint=fingerprint(node.to_document()))
        return await self.render(node, context, session)

    def _finish(self, session: RenderSession, generation: GenerationID, path: str, state: NodeState, **kw: Any) -> bool:
        applied = session.update(generation, path, state, **kw)
        if applied and self.metrics and state.terminal:
            self.metrics.record_node(state.value)
        return applied

    def _failed(
        self,
        session: RenderSession,
        generation: GenerationID,
        path: str,
        key: str,
        node: SchemaNode,
        error: BaseException,
        component: str,
    ) -> Optional[RenderedNode]:
        placeholder = error_placeholder(key, node.type, error)
        logger.warning(
            "node_failed",
            path=path,
            type=node.type,
            code=placeholder["code"],
            error=placeholder["message"],
        )
        if self.metrics:
            self.metrics.record_error(placeholder["code"], component)

        rendered = RenderedNode(
            key=key,
            type=node.type,
            state=NodeState.ERROR,
            output=placeholder,
            error={"code": placeholder["code"], "message": placeholder["message"]},
        )
        if not self._finish(session, generation, path, NodeState.ERROR, node=rendered, error=rendered.error):
            return None
        return rendered

    async def _fetch(
        self,
        binding: DataBinding,
        context: RenderContext,
        session: RenderSession,
        generation: GenerationID,
        path: str,
    ) -> Any:
        scope = session.scopes.register_scope(path, data_source=context.data_source)
        scope.loading = True

        start = time.perf_counter()
        outcome = "error"
        try:
            result = await fetch_binding(binding, context.data_source)
            outcome = "ok"
        except Exception as e:
            if session.is_current(generation):
                session.scopes.update_scope_loading(path, False)
                session.scopes.update_scope_error(path, error_message(e))
            raise
        finally:
            if self.metrics:
                self.metrics.record_fetch(outcome, time.perf_counter() - start)

        if session.is_current(generation):
            session.scopes.update_scope_data(path, result)
            session.scopes.update_scope_loading(path, False)
        return result

    async def _render_node(
        self,
        node: SchemaNode,
        context: RenderContext,
        session: RenderSession,
        generation: GenerationID,
        path: str,
        index: int,
    ) -> Optional[RenderedNode]:
        key = node.key(index)
        if not self._finish(session, generation, path, NodeState.PENDING):
            return None

        # Visibility
        session.update(generation, path, NodeState.RESOLVING_VISIBILITY)
        try:
            resolved = resolve_node_props(node, context, self.evaluator, index)
        except Exception as e:
            return self._failed(session, generation, path, key, node, e, "conditions")

        if not resolved.visible:
            self._finish(session, generation, path, NodeState.HIDDEN)
            return None

        # Data
        data: Any = None
        try:
            binding = extract_binding(resolved.props)
        except Exception as e:
            return self._failed(session, generation, path, key, node, e, "data")
        if binding is not None:
            if not session.update(generation, path, NodeState.RESOLVING_DATA):
                return None
            try:
                fetched = await self._fetch(binding, context, session, generation, path)
            except Exception as e:
                if not session.is_current(generation):
                    session.drop(generation, path)
                    return None
                return self._failed(session, generation, path, key, node, e, "data")

            if not session.is_current(generation):
                session.drop(generation, path)
                return None

            if binding.single:
                data = fetched
                context = context.child(record=fetched, data=fetched)
            else:
                data = fetched.data if isinstance(fetched, QueryResult) else fetched
                context = context.child(data=data)

        # Dispatch
        if not session.update(generation, path, NodeState.DISPATCHING):
            return None
        resolution = self.registry.resolve(node.type)
        if not resolution.known:
            logger.warning("unknown_component", code=UnknownComponentError.code, type=node.type, path=path)
            if self.metrics:
                self.metrics.record_unknown_type(node.type)

        children: List[RenderedNode] = []
        content: Any = None
        child_content = node.content()
        if isinstance(child_content, Nodes):
            results = await asyncio.gather(*[
                self._render_node(child, context, session, generation, f"{path}/{i}:{child.key(i)}", i)
                for i, child in enumerate(child_content.nodes)
            ])
            children = [r for r in results if r is not None]
        elif isinstance(child_content, Leaf):
            content = child_content.value
            if isinstance(content, str) and "${" in content:
                try:
                    content = self.evaluator.evaluate_template(content, context.expression_context())
                except Exception as e:
                    return self._failed(session, generation, path, key, node, e, "conditions")

        if not session.is_current(generation):
            session.drop(generation, path)
            return None

        entry = resolution.entry
        props = {**entry.meta.default_props, **resolved.props}
        render_props = RenderProps(
            type=node.type,
            key=key,
            props=props,
            children=[c.output for c in children],
            content=content,
            data=data,
            disabled=resolved.disabled,
        )

        try:
            output = entry.render(render_props)
            if inspect.isawaitable(output):
                output = await output
        except Exception as e:
            logger.error("renderer_failed", type=node.type, path=path, error=str(e), exc_info=True)
            failure = e if isinstance(e, SchemaUIError) else RenderError(f"Renderer for '{node.type}' failed: {e}")
            return self._failed(session, generation, path, key, node, failure, "renderer")

        rendered = RenderedNode(
            key=key,
            type=node.type,
            state=NodeState.RENDERED,
            output=output,
            children=children,
            props=props,
            data=data,
            disabled=resolved.disabled,
            known=resolution.known,
        )
        if not self._finish(session, generation, path, NodeState.RENDERED, node=rendered):
            return None
        return rendered
